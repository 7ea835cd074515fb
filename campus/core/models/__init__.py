from .base import (  # noqa: F401
    CoreBaseModel,
    TimestampedModel,
    SoftDeleteModel,
    TenantScopedModel,
    UUIDPrimaryKeyModel,
)
from .audit import AuditLog  # noqa: F401
