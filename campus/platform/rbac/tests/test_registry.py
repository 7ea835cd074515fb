import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import ValidationError

from campus.platform.rbac.constants import Action, Resources, RoleCode
from campus.platform.rbac.exceptions import (
    ImmutableFieldError,
    ResourceInUse,
    RoleConflict,
    UnknownPermission,
)
from campus.platform.rbac.helpers import assign_role
from campus.platform.rbac.models import Role, RolePermission
from campus.platform.rbac.registry import (
    create_role,
    delete_role,
    get_role_permissions,
    list_modules,
    remove_role_permission,
    set_role_permission,
    update_role,
)


def test_role_code_is_canonical() -> None:
    assert RoleCode("teacher") == "TEACHER"
    assert RoleCode.from_name("School Admin") == "SCHOOL_ADMIN"
    assert RoleCode.from_name("  Exam / Results Controller ") == "EXAM_RESULTS_CONTROLLER"
    with pytest.raises(ValueError):
        RoleCode("9LIVES")


def test_create_role_derives_code_from_name(tenant, catalog) -> None:
    role = create_role(tenant, name="Exam Controller")
    assert role.code == "EXAM_CONTROLLER"
    assert role.is_system_role is False


def test_duplicate_role_in_same_tenant_conflicts(tenant, other_tenant, catalog) -> None:
    create_role(tenant, name="Counsellor")
    with pytest.raises(RoleConflict):
        create_role(tenant, name="Counsellor")
    # Same code in another tenant is fine
    assert create_role(other_tenant, name="Counsellor").code == "COUNSELLOR"


def test_role_code_cannot_change(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher", code="TEACHER")

    with pytest.raises(ImmutableFieldError) as excinfo:
        update_role(role, code="TEACHER_V2")

    assert excinfo.value.field == "code"
    role.refresh_from_db()
    assert role.code == "TEACHER"


def test_tenant_and_system_flag_cannot_change(tenant, other_tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    with pytest.raises(ImmutableFieldError):
        update_role(role, tenant=other_tenant)
    with pytest.raises(ImmutableFieldError):
        update_role(role, is_system_role=True)


def test_editable_fields_update(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    update_role(role, name="Class Teacher", description="Homeroom", code="TEACHER")
    role.refresh_from_db()
    assert (role.name, role.description, role.code) == ("Class Teacher", "Homeroom", "TEACHER")


def test_system_role_iff_no_tenant(tenant) -> None:
    with pytest.raises(DjangoValidationError):
        Role.objects.create(tenant=None, name="Orphan", code="ORPHAN", is_system_role=False)
    with pytest.raises(DjangoValidationError):
        Role.objects.create(tenant=tenant, name="Global", code="GLOBAL", is_system_role=True)
    with pytest.raises(ValidationError):
        create_role(tenant, name="Global", is_system_role=True)


def test_role_in_use_cannot_be_deleted(tenant, make_user, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    for _ in range(2):
        assign_role(make_user(tenant), "TEACHER", tenant)

    with pytest.raises(ResourceInUse) as excinfo:
        delete_role(role)

    assert excinfo.value.count == 2
    assert Role.objects.filter(pk=role.pk).exists()


def test_unassigned_role_is_deleted_with_its_policy(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    set_role_permission(role, "students", "read", scope="owned")

    delete_role(role)

    assert not Role.objects.filter(pk=role.pk).exists()
    assert not RolePermission.objects.filter(role_id=role.pk).exists()


def test_set_role_permission_is_an_upsert(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    set_role_permission(role, Resources.STUDENTS, Action.READ, effect="allow", scope="self")
    set_role_permission(role, Resources.STUDENTS, Action.READ, effect="allow", scope="owned")

    rows = RolePermission.objects.filter(role=role)
    assert rows.count() == 1
    assert rows.get().scope == "owned"


def test_set_role_permission_validation(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    with pytest.raises(UnknownPermission):
        set_role_permission(role, "spaceships", "read")
    with pytest.raises(ValidationError):
        set_role_permission(role, "students", "read", scope="galaxy")
    with pytest.raises(ValidationError):
        set_role_permission(role, "students", "read", scope="custom", conditions={})


def test_custom_conditions_are_stored_only_for_custom_scope(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    custom = set_role_permission(role, "students", "read", scope="custom", conditions={"departmentId": "<userDept>"})
    assert custom.conditions == {"departmentId": "<userDept>"}
    plain = set_role_permission(role, "students", "read", scope="tenant", conditions={"departmentId": "x"})
    assert plain.conditions == {}


def test_remove_role_permission_is_idempotent(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    set_role_permission(role, "students", "read")
    assert remove_role_permission(role, "students", "read") == 1
    assert remove_role_permission(role, "students", "read") == 0


def test_role_permission_matrix_covers_catalog(tenant, catalog) -> None:
    role = create_role(tenant, name="Teacher")
    set_role_permission(role, "students", "read", scope="owned")

    matrix = get_role_permissions(role)

    assert set(matrix) == {resource.value for resource in Resources}
    assert matrix["students"]["read"] == {"effect": "allow", "scope": "owned", "conditions": {}}
    assert matrix["students"]["delete"] is None


def test_list_modules_groups_actions(catalog) -> None:
    modules = list_modules()
    assert modules["students"] == ["create", "read", "update", "delete", "export"]
    assert len(modules) == len(Resources)
