"""
Data-access gate. Every query on a protected entity starts from the row
filter the engine builds for the caller, so tenant isolation, soft delete
and scope are applied before any caller-supplied filter.
"""

import logging
from typing import Optional

from django.utils import timezone

from .constants import Action, OperationKind
from .engine import get_engine
from .ownership import get_rule

logger = logging.getLogger(__name__)

PROTECTED_FIELDS = ("tenant", "tenant_id", "deleted_at")


def _strip_protected(values: dict) -> dict:
    dropped = [field for field in PROTECTED_FIELDS if field in values]
    if dropped:
        logger.warning(f"Ignoring caller-supplied protected field(s): {', '.join(dropped)}")
    return {key: value for key, value in values.items() if key not in PROTECTED_FIELDS}


class RLSRepository:
    entity_type = None

    def __init__(self, entity_type: Optional[str] = None, engine=None):
        self.entity_type = entity_type or self.entity_type
        self._engine = engine
        self.rule = get_rule(self.entity_type)

    @property
    def engine(self):
        return self._engine or get_engine()

    @property
    def model(self):
        return self.rule.get_model()

    def scoped(self, ctx, operation=OperationKind.READ):
        row_filter = self.engine.enforce_read_filter(ctx, self.entity_type, operation)
        return self.model.all_objects.filter(row_filter)

    def find(self, ctx, filters: Optional[dict] = None, order_by=None):
        qs = self.scoped(ctx).filter(**(filters or {}))
        if order_by:
            qs = qs.order_by(*([order_by] if isinstance(order_by, str) else order_by))
        return qs

    def find_and_count(self, ctx, filters: Optional[dict] = None, page: int = 1, limit: int = 20, order_by=None):
        """Returns (rows, total) for one page."""
        qs = self.find(ctx, filters, order_by or "-created_at")
        total = qs.count()
        offset = max(page - 1, 0) * limit
        return list(qs[offset:offset + limit]), total

    def get(self, ctx, pk, operation=OperationKind.READ):
        """The row if the caller may see it for `operation`, else None."""
        return self.scoped(ctx, operation).filter(pk=pk).first()

    def count(self, ctx, filters: Optional[dict] = None) -> int:
        return self.find(ctx, filters).count()

    def create(self, ctx, **values):
        """Tenant is always taken from the caller's context."""
        self.engine.authorize(ctx, self.rule.resource, Action.CREATE)
        instance = self.model(**_strip_protected(values))
        instance.tenant_id = ctx.tenant_id
        instance.save()
        return instance

    def update(self, ctx, filters: dict, **values) -> int:
        """Returns the number of rows changed; rows outside the caller's scope are untouched."""
        qs = self.scoped(ctx, OperationKind.UPDATE).filter(**filters)
        return qs.update(updated_at=timezone.now(), **_strip_protected(values))

    def destroy(self, ctx, filters: dict) -> int:
        """Soft delete. Returns the number of rows affected."""
        qs = self.scoped(ctx, OperationKind.DELETE).filter(**filters)
        return qs.update(deleted_at=timezone.now())
