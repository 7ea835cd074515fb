"""Shared pytest fixtures: tenants, users, roles and the authorization engine."""

import itertools

import pytest
from django.core.cache import caches
from rest_framework.test import APIClient

from campus.platform.accounts.models import User
from campus.platform.rbac.engine import get_engine
from campus.platform.rbac.helpers import assign_role, seed_permission_catalog
from campus.platform.rbac.registry import create_role, set_role_permission
from campus.platform.tenants.models import Tenant

_emails = itertools.count()


@pytest.fixture(autouse=True)
def _clear_role_cache():
    caches["default"].clear()
    yield
    caches["default"].clear()


@pytest.fixture
def engine():
    return get_engine()


@pytest.fixture
def catalog(db):
    return seed_permission_catalog()


@pytest.fixture
def tenant(db):
    return Tenant.objects.create(name="Greenfield High", slug="greenfield")


@pytest.fixture
def other_tenant(db):
    return Tenant.objects.create(name="Riverside Academy", slug="riverside")


@pytest.fixture
def make_user(db):
    def _make(tenant, **extra):
        return User.objects.create_user(email=f"user{next(_emails)}@example.com", tenant=tenant, **extra)
    return _make


@pytest.fixture
def make_role(catalog):
    """
    make_role(tenant, "TEACHER", ("students", "read", "allow", "owned"), ...)
    A fifth tuple item is the custom-scope conditions map.
    """
    def _make(tenant, code, *grants, is_system_role=False):
        role = create_role(tenant, name=code.replace("_", " ").title(), code=code, is_system_role=is_system_role)
        for resource, action, effect, scope, *conditions in grants:
            set_role_permission(role, resource, action, effect=effect, scope=scope, conditions=conditions[0] if conditions else None)
        return role
    return _make


@pytest.fixture
def member(make_user, engine):
    """
    member(tenant, "TEACHER", "STAFF") -> (user, UserContext)
    Roles must already exist in the tenant (see make_role).
    """
    def _member(tenant, *codes, **user_fields):
        user = make_user(tenant, **user_fields)
        for code in codes:
            assign_role(user, code, tenant)
        ctx = engine.context_for_user(user)
        return user, ctx
    return _member


@pytest.fixture
def api_client():
    return APIClient()
