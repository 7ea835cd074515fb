"""
RBAC Helper Functions
Role assignment (onboarding/offboarding) and default role seeding
"""

import logging
from typing import List, Optional

from django.apps import apps
from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import NotFound, ValidationError

from .constants import (
    ACCESS_MATRIX,
    DEFAULT_TENANT_ROLES,
    LEVEL_GRANTS,
    SYSTEM_ROLES,
    Action,
    Effect,
    Resources,
    RoleCode,
)
from .engine import get_engine
from .models import Permission, Role, RolePermission, UserRole

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# Cache invalidation
# ─────────────────────────────────────────
def invalidate_user_roles(user_id, tenant_id=None) -> None:
    """
    Drop cached roles for a user. A tenant of None means a system-wide
    assignment changed, which affects the user in every tenant.
    """
    engine = get_engine()
    if tenant_id is not None:
        engine.invalidate(user_id, tenant_id)
        return
    Tenant = apps.get_model("tenants", "Tenant")
    for tid in Tenant.objects.values_list("id", flat=True):
        engine.invalidate(user_id, tid)


def invalidate_role_users(role: Role) -> int:
    """Invalidate every holder of a role. Returns the number of assignments touched."""
    holders = list(UserRole.objects.filter(role=role).values_list("user_id", "tenant_id"))
    for user_id, tenant_id in holders:
        invalidate_user_roles(user_id, tenant_id)
    return len(holders)


# ─────────────────────────────────────────
# Assignment
# ─────────────────────────────────────────
def _find_role(role_code, tenant) -> Role:
    code = RoleCode(role_code)
    roles = Role.objects.filter(code=code, is_active=True)
    if tenant is None:
        roles = roles.filter(is_system_role=True)
    else:
        roles = roles.filter(Q(tenant=tenant) | Q(is_system_role=True))
    # A tenant's own role wins over a system role sharing its code
    role = roles.order_by("is_system_role").first()
    if role is None:
        raise NotFound(f"Role not found: {code}")
    return role


def assign_role(user, role_code: str, tenant=None, assigned_by=None) -> UserRole:
    """
    Give `user` the role `role_code` in `tenant` (idempotent).
    With tenant None only system roles can be assigned.
    """
    if tenant is not None and user.tenant_id is not None and user.tenant_id != tenant.pk:
        raise ValidationError({"tenant": "User does not belong to this tenant."})

    with transaction.atomic():
        role = _find_role(role_code, tenant)
        user_role, created = UserRole.objects.get_or_create(
            user=user,
            tenant=tenant,
            role=role,
            defaults={"assigned_by": assigned_by},
        )

    invalidate_user_roles(user.pk, tenant.pk if tenant else None)
    if created:
        logger.info(f"Assigned role {role.code} to user {user.email}")
    return user_role


def revoke_role(user, role_code: str, tenant=None) -> int:
    """Remove one role from a user. Returns the number of assignments removed."""
    code = RoleCode(role_code)
    with transaction.atomic():
        deleted, _ = UserRole.objects.filter(user=user, tenant=tenant, role__code=code).delete()

    invalidate_user_roles(user.pk, tenant.pk if tenant else None)
    if deleted:
        logger.info(f"Revoked role {code} from user {user.email}")
    return deleted


def revoke_all_roles(user, tenant=None) -> int:
    """Offboarding: remove every role the user holds in the tenant."""
    with transaction.atomic():
        deleted, _ = UserRole.objects.filter(user=user, tenant=tenant).delete()

    invalidate_user_roles(user.pk, tenant.pk if tenant else None)
    logger.info(f"Revoked {deleted} role(s) from user {user.email}")
    return deleted


def deactivate_role(role: Role) -> Role:
    """Switch a role off for every holder at once."""
    with transaction.atomic():
        role.is_active = False
        role.save(update_fields=["is_active", "updated_at"])

    invalidate_role_users(role)
    logger.info(f"Deactivated role {role.code}")
    return role


def get_user_role_codes(user, tenant) -> List[RoleCode]:
    return get_engine().resolver.resolve_roles(user.pk, tenant.pk)


# ─────────────────────────────────────────
# Seeding
# ─────────────────────────────────────────
def seed_permission_catalog() -> dict:
    """Create every (resource, action) pair. Safe to run repeatedly."""
    permissions = {}
    for resource in Resources:
        for action in Action:
            permission, _ = Permission.objects.get_or_create(
                resource=resource.value,
                action=action.value,
                defaults={"description": f"{action.value.title()} {resource.value.replace('_', ' ')}"},
            )
            permissions[(resource.value, action.value)] = permission
    return permissions


def _apply_matrix(role: Role, matrix: dict, permissions: dict) -> int:
    """Seed a role's grants; rows an administrator already edited are left alone."""
    created_count = 0
    for resource, level in matrix.items():
        for action, scope in LEVEL_GRANTS[level]:
            _, created = RolePermission.objects.get_or_create(
                role=role,
                permission=permissions[(resource.value, action.value)],
                defaults={"effect": Effect.ALLOW.value, "scope": scope.value},
            )
            created_count += int(created)
    return created_count


def _seed_roles(definitions, tenant: Optional[object]) -> List[Role]:
    permissions = seed_permission_catalog()
    roles = []
    for role_enum, name, description in definitions:
        role, created = Role.objects.get_or_create(
            tenant=tenant,
            code=role_enum.value,
            defaults={
                "name": name,
                "description": description,
                "is_system_role": tenant is None,
            },
        )
        granted = _apply_matrix(role, ACCESS_MATRIX.get(role_enum, {}), permissions)
        if created or granted:
            logger.debug(f"Seeded role {role.code}: {granted} new grant(s)")
        roles.append(role)
    return roles


@transaction.atomic
def seed_system_roles() -> List[Role]:
    return _seed_roles(SYSTEM_ROLES, tenant=None)


@transaction.atomic
def seed_tenant_roles(tenant) -> List[Role]:
    """Default role set and access matrix for a newly provisioned tenant."""
    return _seed_roles(DEFAULT_TENANT_ROLES, tenant=tenant)
