import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated

from campus.platform.rbac.constants import OperationKind, Resources
from campus.platform.rbac.mixins import RLSViewSetMixin
from campus.platform.rbac.permissions import RBACPermission
from campus.utils.response import api_response
from .repositories import StudentRepository
from .serializers import StudentSerializer

logger = logging.getLogger(__name__)


def _int_param(request, name, default):
    try:
        return int(request.query_params.get(name, default))
    except (TypeError, ValueError):
        return default


class StudentViewSet(RLSViewSetMixin, viewsets.ViewSet):
    """
    Students, served through the RLS repository.
    Rows outside the caller's scope behave as if they did not exist.
    """
    permission_classes = [IsAuthenticated, RBACPermission]
    rbac_resource = Resources.STUDENTS
    repository_class = StudentRepository
    serializer_class = StudentSerializer
    not_found_message = "Student not found."

    @extend_schema(
        tags=["Students"],
        summary="List visible students",
        parameters=[
            OpenApiParameter("class_id", str, description="Only students of this class"),
            OpenApiParameter("q", str, description="Search by name"),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
    )
    def list(self, request):
        qs = self.get_repository().find_visible_students(
            self.get_rbac_context(),
            class_id=request.query_params.get("class_id"),
            search=request.query_params.get("q"),
        )
        page = max(_int_param(request, "page", 1), 1)
        limit = min(max(_int_param(request, "limit", 20), 1), 100)
        total = qs.count()
        rows = qs[(page - 1) * limit:page * limit]
        return api_response(200, "success", {
            "results": StudentSerializer(rows, many=True).data,
            "count": total,
            "page": page,
            "limit": limit,
        })

    @extend_schema(tags=["Students"], summary="Retrieve a student")
    def retrieve(self, request, pk=None):
        student = self.get_scoped_object(pk)
        return api_response(200, "success", StudentSerializer(student).data)

    @extend_schema(tags=["Students"], summary="Create a student", request=StudentSerializer)
    def create(self, request):
        serializer = StudentSerializer(data=request.data, context={"rbac_context": self.get_rbac_context()})
        serializer.is_valid(raise_exception=True)
        student = self.perform_create(serializer)
        return api_response(status.HTTP_201_CREATED, "success", StudentSerializer(student).data)

    @extend_schema(tags=["Students"], summary="Update a student", request=StudentSerializer)
    def update(self, request, pk=None):
        self.get_scoped_object(pk, OperationKind.UPDATE)
        serializer = StudentSerializer(data=request.data, partial=True, context={"rbac_context": self.get_rbac_context()})
        serializer.is_valid(raise_exception=True)
        student = self.perform_update(pk, serializer)
        return api_response(200, "success", StudentSerializer(student).data)

    @extend_schema(tags=["Students"], summary="Partially update a student", request=StudentSerializer)
    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    @extend_schema(tags=["Students"], summary="Delete a student")
    def destroy(self, request, pk=None):
        self.get_scoped_object(pk, OperationKind.DELETE)
        self.perform_destroy(pk)
        return api_response(200, "success", {"message": "Student deleted"})
