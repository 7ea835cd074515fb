from django.contrib import admin
from django.urls import path, include
from rest_framework import permissions

from drf_spectacular.views import (
    SpectacularSwaggerView,
    SpectacularRedocView,
)
from config.schema_view import CustomSpectacularAPIView

# ================================
# URL PATTERNS
# ================================
urlpatterns = [

    # -------------------------
    # Django Admin
    # -------------------------
    path("admin/", admin.site.urls),

    # -------------------------
    # Platform services
    # /api/v1/roles/, /api/v1/permissions/
    # -------------------------
    path("api/v1/", include("campus.platform.rbac.urls")),

    # -------------------------
    # School modules
    # /api/v1/students/
    # -------------------------
    path("api/v1/", include("campus.academics.urls")),

    # -------------------------
    # OpenAPI / Swagger / Redoc
    # -------------------------
    path("api/schema/", CustomSpectacularAPIView.as_view(), name="schema"),
    path(
        "api/schema/swagger-ui/",
        SpectacularSwaggerView.as_view(url_name="schema", permission_classes=[permissions.AllowAny]),
        name="swagger-ui",
    ),
    path(
        "api/schema/redoc/",
        SpectacularRedocView.as_view(url_name="schema", permission_classes=[permissions.AllowAny]),
        name="redoc",
    ),
]
