"""
DRF Permission Classes for RBAC
Gate every request on (resource, action) before the handler runs.
"""

import logging
import uuid

from rest_framework import permissions
from rest_framework.exceptions import ValidationError

from .constants import Action
from .utils import authorize, context_for_user

logger = logging.getLogger(__name__)

VIEW_ACTIONS = {
    "list": Action.READ,
    "retrieve": Action.READ,
    "create": Action.CREATE,
    "update": Action.UPDATE,
    "partial_update": Action.UPDATE,
    "destroy": Action.DELETE,
    "export": Action.EXPORT,
}

METHOD_ACTIONS = {
    "GET": Action.READ,
    "HEAD": Action.READ,
    "OPTIONS": Action.READ,
    "POST": Action.CREATE,
    "PUT": Action.UPDATE,
    "PATCH": Action.UPDATE,
    "DELETE": Action.DELETE,
}

TENANT_HEADER = "X-Tenant-ID"


def _header_tenant_id(request):
    raw = request.headers.get(TENANT_HEADER)
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        logger.warning(f"Rejected malformed {TENANT_HEADER} header: {raw!r}")
        raise ValidationError({TENANT_HEADER: "Must be a valid tenant UUID."})


def get_request_context(request):
    """
    The caller's UserContext, built once per request from the authenticated
    user. Platform users pick the tenant they act in with X-Tenant-ID.
    """
    ctx = getattr(request, "rbac_context", None)
    if ctx is None:
        user = request.user
        tenant_id = None if getattr(user, "tenant_id", None) else _header_tenant_id(request)
        ctx = context_for_user(user, tenant_id)
        request.rbac_context = ctx
    return ctx


class RBACPermission(permissions.BasePermission):
    """
    Authorizes `view.rbac_resource` for the action the request performs.

    Usage:
        class StudentViewSet(viewsets.ViewSet):
            permission_classes = [RBACPermission]
            rbac_resource = Resources.STUDENTS
            rbac_actions = {"promote": Action.UPDATE}   # optional extra mappings

    Denials raise ExplicitDeny / ImplicitDeny so the response carries the
    reason code.
    """

    def get_action(self, request, view):
        view_action = getattr(view, "action", None)
        extra = getattr(view, "rbac_actions", {}) or {}
        if view_action in extra:
            return extra[view_action]
        if view_action in VIEW_ACTIONS:
            return VIEW_ACTIONS[view_action]
        return METHOD_ACTIONS.get(request.method, Action.READ)

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        resource = getattr(view, "rbac_resource", None)
        if resource is None:
            logger.error(f"{view.__class__.__name__} uses RBACPermission without rbac_resource")
            return False

        ctx = get_request_context(request)
        request.rbac_policy = authorize(ctx, resource, self.get_action(request, view))
        return True


class IsTenantMember(permissions.BasePermission):
    """Authenticated and acting inside a tenant; no resource check."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        get_request_context(request)
        return True
