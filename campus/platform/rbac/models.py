"""
RBAC Models - permission catalog, roles, policy assignments and role assignments
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from campus.core.models import CoreBaseModel
from .constants import Action, Effect, Scope


class Permission(CoreBaseModel):
    """
    A (resource, action) pair from the permission catalog.
    Rows are seeded and never edited once a policy references them.
    """

    resource = models.CharField(max_length=64, db_index=True)
    action = models.CharField(
        max_length=16,
        choices=[(a.value, a.value) for a in Action],
    )
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "rbac_permissions"
        ordering = ["resource", "action"]
        constraints = [
            models.UniqueConstraint(fields=["resource", "action"], name="uniq_permission_resource_action"),
        ]

    def __str__(self):
        return f"{self.resource}:{self.action}"


class Role(CoreBaseModel):
    """
    A named role, either owned by one tenant or system-wide (tenant is NULL).

    `code` is the identifier used for every policy lookup and cannot change
    after creation.
    """

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.CASCADE,
        related_name="roles",
        null=True,
        blank=True,
        help_text="NULL for system-wide roles",
    )
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=100, db_index=True)
    description = models.TextField(blank=True)
    is_system_role = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "rbac_roles"
        ordering = ["-is_system_role", "name"]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "code"], name="uniq_role_tenant_code"),
            models.UniqueConstraint(fields=["tenant", "name"], name="uniq_role_tenant_name"),
            models.UniqueConstraint(
                fields=["code"],
                condition=models.Q(tenant__isnull=True),
                name="uniq_system_role_code",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(is_system_role=True, tenant__isnull=True)
                    | models.Q(is_system_role=False, tenant__isnull=False)
                ),
                name="role_system_iff_no_tenant",
            ),
        ]
        indexes = [
            models.Index(fields=["code", "is_active"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def clean(self):
        if self.is_system_role != (self.tenant_id is None):
            raise ValidationError("System roles must have no tenant and tenant roles must have one.")

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)


class RolePermission(CoreBaseModel):
    """
    Policy assignment: grants or denies a permission to a role at a scope.
    A custom-scoped assignment without conditions grants nothing.
    """

    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name="role_permissions")
    permission = models.ForeignKey(Permission, on_delete=models.PROTECT, related_name="role_permissions")
    effect = models.CharField(
        max_length=8,
        choices=[(e.value, e.value) for e in Effect],
        default=Effect.ALLOW.value,
    )
    scope = models.CharField(
        max_length=16,
        choices=[(s.value, s.value) for s in Scope],
        default=Scope.TENANT.value,
    )
    conditions = models.JSONField(
        default=dict,
        blank=True,
        help_text='Field equality predicates for custom scope, e.g. {"departmentId": "<userDept>"}',
    )

    class Meta:
        db_table = "rbac_role_permissions"
        constraints = [
            models.UniqueConstraint(fields=["role", "permission"], name="uniq_role_permission"),
        ]

    def __str__(self):
        return f"{self.role.code} {self.effect} {self.permission} [{self.scope}]"


class UserRole(CoreBaseModel):
    """
    Assigns a role to a user inside a tenant.
    System roles may be held with tenant NULL, which applies them everywhere.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="user_roles",
    )
    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.CASCADE,
        related_name="user_roles",
        null=True,
        blank=True,
    )
    role = models.ForeignKey(Role, on_delete=models.PROTECT, related_name="user_roles")
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_roles",
    )
    assigned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "rbac_user_roles"
        constraints = [
            models.UniqueConstraint(fields=["user", "tenant", "role"], name="uniq_user_tenant_role"),
        ]
        indexes = [
            models.Index(fields=["user", "tenant"]),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.role.code} @ {self.tenant_id or 'system'}"
