"""
RBAC Mixins for ViewSets
Serve a protected entity through its RLS repository.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import NotFound

from .constants import OperationKind
from .permissions import get_request_context

logger = logging.getLogger(__name__)


class RLSViewSetMixin:
    """
    Requires `repository_class` (an RLSRepository subclass) and
    `serializer_class`. Reads are filtered to visible rows; writes touch only
    rows inside the caller's scope for that operation, and report 404 otherwise.
    """

    repository_class = None
    serializer_class = None
    not_found_message = "Record not found."

    def get_repository(self):
        return self.repository_class()

    def get_rbac_context(self):
        return get_request_context(self.request)

    def get_queryset(self):
        return self.get_repository().find(self.get_rbac_context())

    def get_scoped_object(self, pk, operation=OperationKind.READ):
        try:
            instance = self.get_repository().get(self.get_rbac_context(), pk, operation)
        except DjangoValidationError:
            instance = None
        if instance is None:
            raise NotFound(self.not_found_message)
        return instance

    def perform_create(self, serializer):
        return self.get_repository().create(self.get_rbac_context(), **serializer.validated_data)

    def perform_update(self, pk, serializer):
        repository = self.get_repository()
        ctx = self.get_rbac_context()
        rows = repository.update(ctx, {"pk": pk}, **serializer.validated_data)
        if not rows:
            raise NotFound(self.not_found_message)
        return repository.get(ctx, pk)

    def perform_destroy(self, pk):
        rows = self.get_repository().destroy(self.get_rbac_context(), {"pk": pk})
        if not rows:
            raise NotFound(self.not_found_message)
        logger.info(f"Soft deleted {self.get_repository().entity_type} {pk}")
        return rows
