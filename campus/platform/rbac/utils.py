"""
RBAC Utility Functions
Module-level shortcuts onto the configured authorization engine
"""

from .constants import OperationKind
from .engine import get_engine


def build_user_context(user_id, tenant_id, attributes=None):
    return get_engine().build_user_context(user_id, tenant_id, attributes)


def context_for_user(user, tenant_id=None):
    return get_engine().context_for_user(user, tenant_id)


def resolve_roles(user_id, tenant_id):
    return get_engine().resolver.resolve_roles(user_id, tenant_id)


def authorize(ctx, resource, action):
    """Raise ExplicitDeny/ImplicitDeny unless the caller may perform the action."""
    return get_engine().authorize(ctx, resource, action)


def decide(ctx, resource, action):
    return get_engine().decide(ctx, resource, action)


def has_permission(ctx, resource, action) -> bool:
    return decide(ctx, resource, action).allowed


def enforce_read_filter(ctx, entity_type, operation=OperationKind.READ):
    return get_engine().enforce_read_filter(ctx, entity_type, operation)


def invalidate(user_id, tenant_id):
    get_engine().invalidate(user_id, tenant_id)
