"""
Authorization errors.

All of them are DRF APIExceptions so the project exception handler renders
them through the standard response envelope with `default_code` as errorCode.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated

from .constants import DecisionReason


class UserContextMissing(NotAuthenticated):
    default_detail = "No authenticated user or tenant is associated with this request."
    default_code = "USER_CONTEXT_MISSING"


class AccessDenied(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "ACCESS_DENIED"
    reason = None

    def __init__(self, resource=None, action=None, detail=None):
        self.resource = resource
        self.action = action
        if detail is None and resource:
            detail = f"Access denied: {action} on {resource}."
        super().__init__(detail=detail)


class ExplicitDeny(AccessDenied):
    default_code = "EXPLICIT_DENY"
    reason = DecisionReason.EXPLICIT_DENY


class ImplicitDeny(AccessDenied):
    default_code = "IMPLICIT_DENY"
    reason = DecisionReason.IMPLICIT_DENY


class ResourceInUse(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource is still referenced."
    default_code = "RESOURCE_IN_USE"

    def __init__(self, count, detail=None):
        self.count = count
        super().__init__(detail=detail or f"Resource is referenced by {count} assignment(s).")

    def get_extra(self):
        return {"count": self.count}


class ImmutableFieldError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Field cannot be changed after creation."
    default_code = "IMMUTABLE_FIELD"

    def __init__(self, field, detail=None):
        self.field = field
        super().__init__(detail=detail or f"'{field}' cannot be changed after creation.")

    def get_extra(self):
        return {"field": self.field}


class RoleConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "A role with this name or code already exists."
    default_code = "ROLE_CONFLICT"


class UnknownPermission(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Permission is not part of the catalog."
    default_code = "UNKNOWN_PERMISSION"


class UnknownScope(APIException):
    """A stored policy carries a scope outside the defined set. Fails closed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "A stored policy has an invalid scope."
    default_code = "UNKNOWN_SCOPE"

    def __init__(self, scope, detail=None):
        self.scope = scope
        super().__init__(detail=detail or f"Unknown policy scope: {scope!r}")


class UnknownEntity(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "No ownership rule is registered for this entity type."
    default_code = "UNKNOWN_ENTITY"

    def __init__(self, entity_type, detail=None):
        self.entity_type = entity_type
        super().__init__(detail=detail or f"No ownership rule registered for '{entity_type}'")
