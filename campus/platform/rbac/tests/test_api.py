import pytest

from campus.platform.rbac.constants import Action
from campus.platform.rbac.helpers import assign_role
from campus.platform.rbac.models import Role


@pytest.fixture
def admin_client(tenant, make_role, member, api_client):
    make_role(
        tenant,
        "SCHOOL_ADMIN",
        *[("user_management", action.value, "allow", "tenant") for action in Action],
    )
    user, _ = member(tenant, "SCHOOL_ADMIN")
    api_client.force_authenticate(user)
    return api_client


def test_unauthenticated_request_is_rejected(api_client, db) -> None:
    response = api_client.get("/api/v1/roles/")
    assert response.status_code == 401
    assert response.data["status"] == "failure"


def test_role_list_is_tenant_scoped(tenant, other_tenant, make_role, admin_client) -> None:
    make_role(other_tenant, "TEACHER")
    make_role(None, "SUPPORT_ENGINEER", is_system_role=True)

    response = admin_client.get("/api/v1/roles/")

    assert response.status_code == 200
    codes = sorted(role["code"] for role in response.data["data"])
    assert codes == ["SCHOOL_ADMIN", "SUPPORT_ENGINEER"]


def test_missing_grant_is_implicit_deny(tenant, make_role, member, api_client) -> None:
    make_role(tenant, "TEACHER", ("students", "read", "allow", "owned"))
    user, _ = member(tenant, "TEACHER")
    api_client.force_authenticate(user)

    response = api_client.get("/api/v1/roles/")

    assert response.status_code == 403
    assert response.data["errorCode"] == "IMPLICIT_DENY"


def test_explicit_deny_is_reported(tenant, make_role, member, api_client) -> None:
    make_role(
        tenant,
        "AUDITOR",
        ("user_management", "read", "allow", "tenant"),
        ("user_management", "create", "deny", "tenant"),
    )
    user, _ = member(tenant, "AUDITOR")
    api_client.force_authenticate(user)

    assert api_client.get("/api/v1/roles/").status_code == 200
    response = api_client.post("/api/v1/roles/", {"name": "Coach"}, format="json")
    assert response.status_code == 403
    assert response.data["errorCode"] == "EXPLICIT_DENY"


def test_create_and_rename_role(tenant, admin_client) -> None:
    response = admin_client.post("/api/v1/roles/", {"name": "Sports Coach"}, format="json")
    assert response.status_code == 201
    role_id = response.data["data"]["id"]
    assert response.data["data"]["code"] == "SPORTS_COACH"
    assert str(Role.objects.get(pk=role_id).tenant_id) == str(tenant.pk)

    response = admin_client.patch(f"/api/v1/roles/{role_id}/", {"name": "Head Coach"}, format="json")
    assert response.status_code == 200
    assert response.data["data"]["name"] == "Head Coach"


def test_changing_role_code_is_rejected(tenant, make_role, admin_client) -> None:
    role = make_role(tenant, "TEACHER")

    response = admin_client.patch(f"/api/v1/roles/{role.pk}/", {"code": "TEACHER_V2"}, format="json")

    assert response.status_code == 400
    assert response.data["errorCode"] == "IMMUTABLE_FIELD"
    assert response.data["data"] == {"field": "code"}


def test_deleting_assigned_role_reports_count(tenant, make_role, make_user, admin_client) -> None:
    role = make_role(tenant, "TEACHER")
    assign_role(make_user(tenant), "TEACHER", tenant)

    response = admin_client.delete(f"/api/v1/roles/{role.pk}/")

    assert response.status_code == 409
    assert response.data["errorCode"] == "RESOURCE_IN_USE"
    assert response.data["data"] == {"count": 1}


def test_system_roles_are_read_only_for_tenants(make_role, admin_client) -> None:
    role = make_role(None, "SUPPORT_ENGINEER", is_system_role=True)

    assert admin_client.get(f"/api/v1/roles/{role.pk}/").status_code == 200
    assert admin_client.patch(f"/api/v1/roles/{role.pk}/", {"name": "x"}, format="json").status_code == 403


def test_replace_role_policy(tenant, make_role, admin_client) -> None:
    role = make_role(tenant, "TEACHER", ("fees", "read", "allow", "tenant"))
    payload = {
        "permissions": [
            {"resource": "students", "action": "read", "effect": "allow", "scope": "owned"},
            {"resource": "students", "action": "delete", "effect": "deny", "scope": "tenant"},
            {"resource": "fees", "action": "read", "effect": None},
        ]
    }

    response = admin_client.put(f"/api/v1/roles/{role.pk}/permissions/", payload, format="json")

    assert response.status_code == 200
    matrix = response.data["data"]
    assert matrix["students"]["read"]["scope"] == "owned"
    assert matrix["students"]["delete"]["effect"] == "deny"
    assert matrix["fees"]["read"] is None


def test_custom_policy_requires_conditions(tenant, make_role, admin_client) -> None:
    role = make_role(tenant, "TEACHER")
    payload = {"permissions": [{"resource": "students", "action": "read", "effect": "allow", "scope": "custom"}]}

    response = admin_client.put(f"/api/v1/roles/{role.pk}/permissions/", payload, format="json")

    assert response.status_code == 400
    assert response.data["errorCode"] == "VALIDATION_ERROR"


def test_my_permissions(tenant, make_role, member, api_client) -> None:
    make_role(tenant, "PARENT", ("students", "read", "allow", "owned"), ("fees", "read", "allow", "owned"))
    user, _ = member(tenant, "PARENT")
    api_client.force_authenticate(user)

    response = api_client.get("/api/v1/permissions/me/")

    assert response.status_code == 200
    data = response.data["data"]
    assert data["roles"] == ["PARENT"]
    assert {(p["resource"], p["scope"]) for p in data["permissions"]} == {("fees", "owned"), ("students", "owned")}


def test_permission_modules(tenant, member, catalog, api_client) -> None:
    user, _ = member(tenant)
    api_client.force_authenticate(user)

    response = api_client.get("/api/v1/permissions/modules/")

    assert response.status_code == 200
    assert response.data["data"]["students"] == ["create", "read", "update", "delete", "export"]


def test_platform_user_needs_tenant_header(tenant, make_role, make_user, api_client) -> None:
    make_role(None, "SUPPORT_ENGINEER", ("user_management", "read", "allow", "tenant"), is_system_role=True)
    engineer = make_user(None)
    assign_role(engineer, "SUPPORT_ENGINEER", None)
    api_client.force_authenticate(engineer)

    assert api_client.get("/api/v1/roles/").status_code == 401
    response = api_client.get("/api/v1/roles/", HTTP_X_TENANT_ID=str(tenant.pk))
    assert response.status_code == 200


def test_malformed_tenant_header_is_rejected(tenant, make_role, make_user, api_client) -> None:
    make_role(None, "SUPPORT_ENGINEER", ("students", "read", "allow", "tenant"), is_system_role=True)
    engineer = make_user(None)
    assign_role(engineer, "SUPPORT_ENGINEER", None)
    api_client.force_authenticate(engineer)

    response = api_client.get("/api/v1/students/", HTTP_X_TENANT_ID="not-a-uuid")

    assert response.status_code == 400
    assert response.data["errorCode"] == "VALIDATION_ERROR"


def test_tenant_member_header_is_ignored(tenant, make_role, member, api_client) -> None:
    make_role(tenant, "SCHOOL_ADMIN", ("user_management", "read", "allow", "tenant"))
    admin, _ = member(tenant, "SCHOOL_ADMIN")
    api_client.force_authenticate(admin)

    response = api_client.get("/api/v1/roles/", HTTP_X_TENANT_ID="not-a-uuid")

    assert response.status_code == 200
