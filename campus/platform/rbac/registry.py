"""
Role Registry & Policy Store - administrative mutations of roles and their
policy assignments. Every mutation is a single atomic transaction.
"""

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Q
from rest_framework.exceptions import ValidationError

from .constants import Action, Effect, RoleCode, Scope
from .exceptions import ImmutableFieldError, ResourceInUse, RoleConflict, UnknownPermission
from .models import Permission, Role, RolePermission, UserRole

logger = logging.getLogger(__name__)

IMMUTABLE_ROLE_FIELDS = ("code", "tenant", "tenant_id", "is_system_role")
EDITABLE_ROLE_FIELDS = ("name", "description", "is_active")


def _same_tenant_roles(tenant):
    if tenant is None:
        return Role.objects.filter(tenant__isnull=True)
    return Role.objects.filter(tenant=tenant)


def create_role(tenant, name: str, code: Optional[str] = None, description: str = "", is_system_role: bool = False) -> Role:
    """
    Create a role. The code defaults to one derived from the name
    ("Exam Controller" -> EXAM_CONTROLLER) and never changes afterwards.
    """
    if is_system_role != (tenant is None):
        raise ValidationError({"is_system_role": "System roles have no tenant and tenant roles must have one."})
    try:
        code = RoleCode(code) if code else RoleCode.from_name(name)
    except ValueError as e:
        raise ValidationError({"code": str(e)})

    with transaction.atomic():
        if _same_tenant_roles(tenant).filter(Q(code=code) | Q(name=name)).exists():
            raise RoleConflict(f"Role '{name}' ({code}) already exists.")
        role = Role.objects.create(
            tenant=tenant,
            name=name,
            code=code,
            description=description,
            is_system_role=is_system_role,
        )
    logger.info(f"Created role {code} for tenant {tenant.pk if tenant else 'system'}")
    return role


def update_role(role: Role, **changes) -> Role:
    """Edit name, description or is_active. Identity fields are rejected."""
    for field, value in changes.items():
        if field in IMMUTABLE_ROLE_FIELDS:
            current = getattr(role, field)
            if field == "tenant":
                current, value = role.tenant_id, getattr(value, "pk", value)
            if str(value) != str(current):
                raise ImmutableFieldError(field)
        elif field not in EDITABLE_ROLE_FIELDS:
            raise ValidationError({field: "Unknown role field."})

    toggled = "is_active" in changes and bool(changes["is_active"]) != role.is_active

    with transaction.atomic():
        new_name = changes.get("name")
        if new_name and new_name != role.name:
            if _same_tenant_roles(role.tenant).filter(name=new_name).exclude(pk=role.pk).exists():
                raise RoleConflict(f"Role '{new_name}' already exists.")
        for field in EDITABLE_ROLE_FIELDS:
            if field in changes:
                setattr(role, field, changes[field])
        role.save()

    if toggled:
        from .helpers import invalidate_role_users

        invalidate_role_users(role)
    return role


def delete_role(role: Role) -> None:
    """Hard delete a role and its policies. Refused while any user holds it."""
    with transaction.atomic():
        role = Role.objects.select_for_update().get(pk=role.pk)
        count = UserRole.objects.filter(role=role).count()
        if count:
            raise ResourceInUse(count, f"Role {role.code} is assigned to {count} user(s).")
        role.role_permissions.all().delete()
        role.delete()
    logger.info(f"Deleted role {role.code}")


def _get_permission(resource, action) -> Permission:
    action = getattr(action, "value", action)
    resource = getattr(resource, "value", resource)
    try:
        return Permission.objects.get(resource=resource, action=action)
    except Permission.DoesNotExist:
        raise UnknownPermission(f"Unknown permission {resource}:{action}")


def _validate_conditions(scope, conditions):
    if scope is not Scope.CUSTOM:
        return {}
    if not isinstance(conditions, dict) or not conditions:
        raise ValidationError({"conditions": "Custom scope requires at least one field condition."})
    for key, value in conditions.items():
        if not isinstance(key, str) or isinstance(value, (dict, list)):
            raise ValidationError({"conditions": "Conditions map field names to single values."})
    return dict(conditions)


def set_role_permission(role: Role, resource, action, effect=Effect.ALLOW, scope=Scope.TENANT, conditions=None) -> RolePermission:
    """Create or replace the single assignment a role holds for a permission."""
    try:
        effect = Effect(getattr(effect, "value", effect))
        scope = Scope(getattr(scope, "value", scope))
    except ValueError as e:
        raise ValidationError({"policy": str(e)})
    conditions = _validate_conditions(scope, conditions)

    with transaction.atomic():
        permission = _get_permission(resource, action)
        assignment, _ = RolePermission.objects.update_or_create(
            role=role,
            permission=permission,
            defaults={"effect": effect.value, "scope": scope.value, "conditions": conditions},
        )
    logger.info(f"Set {role.code} {effect.value} {permission} [{scope.value}]")
    return assignment


def remove_role_permission(role: Role, resource, action) -> int:
    with transaction.atomic():
        permission = _get_permission(resource, action)
        deleted, _ = RolePermission.objects.filter(role=role, permission=permission).delete()
    return deleted


def get_role_permissions(role: Role) -> dict:
    """
    Catalog-wide matrix of a role's assignments:
    {resource: {action: {"effect", "scope", "conditions"} | None}}
    """
    assigned = {
        (rp.permission.resource, rp.permission.action): rp
        for rp in role.role_permissions.select_related("permission")
    }
    matrix = {}
    for permission in Permission.objects.all():
        rp = assigned.get((permission.resource, permission.action))
        matrix.setdefault(permission.resource, {})[permission.action] = (
            {"effect": rp.effect, "scope": rp.scope, "conditions": rp.conditions} if rp else None
        )
    return matrix


def list_modules() -> dict:
    """Permission catalog grouped by resource: {resource: [action, ...]}"""
    order = {action.value: i for i, action in enumerate(Action)}
    modules = {}
    for resource, action in Permission.objects.values_list("resource", "action"):
        modules.setdefault(resource, []).append(action)
    return {resource: sorted(actions, key=order.get) for resource, actions in sorted(modules.items())}
