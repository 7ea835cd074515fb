"""
Django Admin for RBAC models
"""

from django.contrib import admin
from .models import Permission, Role, RolePermission, UserRole


class RolePermissionInline(admin.TabularInline):
    model = RolePermission
    extra = 0
    autocomplete_fields = ['permission']


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'tenant', 'is_system_role', 'is_active']
    list_filter = ['is_system_role', 'is_active']
    search_fields = ['name', 'code', 'tenant__name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [RolePermissionInline]

    def get_readonly_fields(self, request, obj=None):
        # Identity fields are fixed once the role exists
        if obj is not None:
            return self.readonly_fields + ['code', 'tenant', 'is_system_role']
        return self.readonly_fields


@admin.register(Permission)
class PermissionAdmin(admin.ModelAdmin):
    list_display = ['resource', 'action', 'description']
    list_filter = ['action']
    search_fields = ['resource', 'action']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(RolePermission)
class RolePermissionAdmin(admin.ModelAdmin):
    list_display = ['role', 'permission', 'effect', 'scope']
    list_filter = ['effect', 'scope', 'permission__resource']
    search_fields = ['role__code', 'permission__resource']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'tenant', 'assigned_by', 'assigned_at']
    list_filter = ['role__code']
    search_fields = ['user__email', 'role__code', 'tenant__name']
    readonly_fields = ['id', 'created_at', 'updated_at', 'assigned_at']
    date_hierarchy = 'assigned_at'
