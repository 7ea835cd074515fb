import logging

from django.apps import apps
from django.db import transaction
from django.db.models import Q
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated

from campus.utils.response import api_response
from .constants import Resources
from .engine import get_engine
from .models import Role
from .permissions import IsTenantMember, RBACPermission, get_request_context
from .registry import (
    create_role,
    delete_role,
    get_role_permissions,
    list_modules,
    remove_role_permission,
    set_role_permission,
    update_role,
)
from .serializers import (
    ResolvedPolicySerializer,
    RoleCreateSerializer,
    RolePermissionsUpdateSerializer,
    RoleSerializer,
    RoleUpdateSerializer,
)

logger = logging.getLogger(__name__)


class RoleViewSet(viewsets.ViewSet):
    """
    Tenant role management.
    System roles are listed for reference but cannot be changed from a tenant.
    """
    permission_classes = [IsAuthenticated, RBACPermission]
    rbac_resource = Resources.USER_MANAGEMENT

    def _visible_roles(self, request):
        ctx = get_request_context(request)
        return Role.objects.filter(Q(tenant_id=ctx.tenant_id) | Q(is_system_role=True))

    def _get_role(self, request, pk):
        role = self._visible_roles(request).filter(pk=pk).first()
        if role is None:
            raise NotFound("Role not found.")
        return role

    def _get_tenant_role(self, request, pk):
        role = self._get_role(request, pk)
        if role.is_system_role:
            raise PermissionDenied("System roles cannot be modified.")
        return role

    @extend_schema(tags=["Roles"], summary="List roles available in the tenant")
    def list(self, request):
        roles = self._visible_roles(request)
        return api_response(200, "success", RoleSerializer(roles, many=True).data)

    @extend_schema(tags=["Roles"], summary="Retrieve a role")
    def retrieve(self, request, pk=None):
        return api_response(200, "success", RoleSerializer(self._get_role(request, pk)).data)

    @extend_schema(tags=["Roles"], summary="Create a tenant role", request=RoleCreateSerializer)
    def create(self, request):
        serializer = RoleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        Tenant = apps.get_model("tenants", "Tenant")
        tenant = Tenant.objects.get(pk=get_request_context(request).tenant_id)
        role = create_role(
            tenant,
            name=serializer.validated_data["name"],
            code=serializer.validated_data.get("code") or None,
            description=serializer.validated_data.get("description", ""),
        )
        return api_response(status.HTTP_201_CREATED, "success", RoleSerializer(role).data)

    @extend_schema(tags=["Roles"], summary="Update a tenant role", request=RoleUpdateSerializer)
    def update(self, request, pk=None):
        role = self._get_tenant_role(request, pk)
        serializer = RoleUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        role = update_role(role, **serializer.validated_data)
        return api_response(200, "success", RoleSerializer(role).data)

    @extend_schema(tags=["Roles"], summary="Partially update a tenant role", request=RoleUpdateSerializer)
    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    @extend_schema(tags=["Roles"], summary="Delete an unassigned tenant role")
    def destroy(self, request, pk=None):
        delete_role(self._get_tenant_role(request, pk))
        return api_response(200, "success", {"message": "Role deleted"})

    @extend_schema(tags=["Roles"], summary="Get or replace a role's policy", request=RolePermissionsUpdateSerializer)
    @action(detail=True, methods=["get", "put"])
    def permissions(self, request, pk=None):
        if request.method == "GET":
            role = self._get_role(request, pk)
            return api_response(200, "success", get_role_permissions(role))

        role = self._get_tenant_role(request, pk)
        serializer = RolePermissionsUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            for row in serializer.validated_data["permissions"]:
                if row["effect"] is None:
                    remove_role_permission(role, row["resource"], row["action"])
                else:
                    set_role_permission(
                        role,
                        row["resource"],
                        row["action"],
                        effect=row["effect"],
                        scope=row["scope"],
                        conditions=row.get("conditions"),
                    )
        return api_response(200, "success", get_role_permissions(role))


class PermissionViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, IsTenantMember]

    @extend_schema(tags=["Permissions"], summary="Permission catalog grouped by resource")
    @action(detail=False, methods=["get"])
    def modules(self, request):
        return api_response(200, "success", list_modules())

    @extend_schema(tags=["Permissions"], summary="Resolved decisions for the current user")
    @action(detail=False, methods=["get"])
    def me(self, request):
        ctx = get_request_context(request)
        decisions = [policy.as_dict() for policy in get_engine().summarize(ctx)]
        return api_response(200, "success", {
            "userId": str(ctx.user_id),
            "tenantId": str(ctx.tenant_id),
            "roles": [str(code) for code in ctx.role_codes],
            "permissions": ResolvedPolicySerializer(decisions, many=True).data,
        })
