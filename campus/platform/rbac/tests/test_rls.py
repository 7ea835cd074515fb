import uuid

import pytest
from django.utils import timezone

from campus.academics.models import SchoolClass, Student
from campus.platform.rbac.constants import DecisionReason, OperationKind, Scope
from campus.platform.rbac.context import ResolvedPolicy
from campus.platform.rbac.exceptions import ExplicitDeny, ImplicitDeny, UnknownEntity, UnknownScope
from campus.platform.rbac.rls import QueryTranslator


def visible(row_filter):
    return set(Student.all_objects.filter(row_filter).values_list("first_name", flat=True))


@pytest.fixture
def translator():
    return QueryTranslator()


@pytest.fixture
def school(tenant, other_tenant, make_user):
    """Two classes in `tenant`, one in `other_tenant`, with a few students each."""
    teacher = make_user(tenant)
    pupil = make_user(tenant)
    class_a = SchoolClass.objects.create(tenant=tenant, name="5A", teacher=teacher)
    class_b = SchoolClass.objects.create(tenant=tenant, name="5B")
    foreign_class = SchoolClass.objects.create(tenant=other_tenant, name="X1", teacher=teacher)

    Student.objects.create(tenant=tenant, school_class=class_a, first_name="Asha", user=pupil)
    Student.objects.create(tenant=tenant, school_class=class_b, first_name="Bilal")
    Student.objects.create(
        tenant=tenant, school_class=class_a, first_name="Gone", deleted_at=timezone.now()
    )
    Student.objects.create(tenant=other_tenant, school_class=foreign_class, first_name="Foreign", user=pupil)
    return {"teacher": teacher, "pupil": pupil, "class_a": class_a, "class_b": class_b}


def allow(scope, conditions=None):
    return ResolvedPolicy("students", "read", True, DecisionReason.ALLOWED, scope, conditions or [])


def test_tenant_scope_sees_live_rows_of_own_tenant_only(tenant, school, member, translator, make_role) -> None:
    make_role(tenant, "PRINCIPAL")
    _, ctx = member(tenant, "PRINCIPAL")
    assert visible(translator.build_filter(allow(Scope.TENANT), "students", ctx)) == {"Asha", "Bilal"}


@pytest.mark.parametrize("scope", [Scope.TENANT, Scope.SELF, Scope.OWNED])
def test_no_scope_crosses_tenants_or_shows_deleted_rows(tenant, school, engine, translator, scope) -> None:
    for user in (school["teacher"], school["pupil"]):
        ctx = engine.build_user_context(user.pk, tenant.pk)
        names = visible(translator.build_filter(allow(scope), "students", ctx))
        assert "Foreign" not in names
        assert "Gone" not in names


def test_self_scope_matches_owning_user(tenant, school, engine, translator) -> None:
    ctx = engine.build_user_context(school["pupil"].pk, tenant.pk)
    assert visible(translator.build_filter(allow(Scope.SELF), "students", ctx)) == {"Asha"}


def test_denied_read_matches_nothing(tenant, school, engine, translator) -> None:
    ctx = engine.build_user_context(school["teacher"].pk, tenant.pk)
    policy = ResolvedPolicy.deny("students", "read", DecisionReason.IMPLICIT_DENY)
    assert visible(translator.build_filter(policy, "students", ctx, OperationKind.READ)) == set()


@pytest.mark.parametrize(
    "reason, error",
    [(DecisionReason.EXPLICIT_DENY, ExplicitDeny), (DecisionReason.IMPLICIT_DENY, ImplicitDeny)],
)
@pytest.mark.parametrize("operation", [OperationKind.UPDATE, OperationKind.DELETE])
def test_denied_write_raises(tenant, school, engine, translator, reason, error, operation) -> None:
    ctx = engine.build_user_context(school["teacher"].pk, tenant.pk)
    policy = ResolvedPolicy.deny("students", operation.value, reason)
    with pytest.raises(error):
        translator.build_filter(policy, "students", ctx, operation)


def test_custom_conditions_use_user_attributes(tenant, make_user, engine, translator) -> None:
    dept, other_dept = uuid.uuid4(), uuid.uuid4()
    Student.objects.create(tenant=tenant, first_name="Inside", department_id=dept)
    Student.objects.create(tenant=tenant, first_name="Outside", department_id=other_dept)
    user = make_user(tenant, department_id=dept)
    ctx = engine.context_for_user(user)

    row_filter = translator.build_filter(allow(Scope.CUSTOM, [{"departmentId": "<userDept>"}]), "students", ctx)
    assert visible(row_filter) == {"Inside"}


def test_custom_condition_maps_are_anded(tenant, make_user, engine, translator) -> None:
    dept = uuid.uuid4()
    user = make_user(tenant, department_id=dept)
    Student.objects.create(tenant=tenant, first_name="Both", department_id=dept, user=user)
    Student.objects.create(tenant=tenant, first_name="DeptOnly", department_id=dept)
    ctx = engine.context_for_user(user)

    policy = allow(Scope.CUSTOM, [{"departmentId": "<userDept>"}, {"userId": "<userId>"}])
    assert visible(translator.build_filter(policy, "students", ctx)) == {"Both"}


@pytest.mark.parametrize(
    "conditions",
    [[{"shoeSize": 42}], [{"departmentId": "<user.favouriteColour>"}]],
)
def test_unresolvable_conditions_fail_closed(tenant, make_user, engine, translator, conditions) -> None:
    Student.objects.create(tenant=tenant, first_name="Anyone")
    ctx = engine.context_for_user(make_user(tenant))
    assert visible(translator.build_filter(allow(Scope.CUSTOM, conditions), "students", ctx)) == set()


def test_unregistered_entity_is_rejected(tenant, make_user, engine, translator) -> None:
    ctx = engine.context_for_user(make_user(tenant))
    with pytest.raises(UnknownEntity):
        translator.build_filter(allow(Scope.TENANT), "spaceships", ctx)


def test_untranslatable_scope_is_rejected(tenant, make_user, engine, translator) -> None:
    ctx = engine.context_for_user(make_user(tenant))
    policy = ResolvedPolicy("students", "read", True, DecisionReason.ALLOWED, "galaxy")
    with pytest.raises(UnknownScope):
        translator.build_filter(policy, "students", ctx)
