from types import SimpleNamespace

import pytest

from campus.platform.rbac.constants import DecisionReason, Scope
from campus.platform.rbac.context import UserContext
from campus.platform.rbac.exceptions import UnknownScope
from campus.platform.rbac.models import Role, RolePermission
from campus.platform.rbac.policy import aggregate


def grant(effect, scope, conditions=None, role=None):
    assignment = SimpleNamespace(effect=effect, scope=scope, conditions=conditions or {})
    if role:
        assignment.role = SimpleNamespace(code=role)
    return assignment


def test_deny_overrides_every_allow() -> None:
    policy = aggregate(
        [grant("allow", "tenant"), grant("deny", "self"), grant("allow", "owned")],
        "students",
        "read",
    )
    assert policy.allowed is False
    assert policy.reason is DecisionReason.EXPLICIT_DENY
    assert policy.scope is None


@pytest.mark.parametrize(
    "scopes, expected",
    [
        (["self"], Scope.SELF),
        (["self", "owned"], Scope.OWNED),
        (["owned", "self", "owned"], Scope.OWNED),
        (["self", "tenant", "owned"], Scope.TENANT),
        (["tenant", "custom"], Scope.TENANT),
    ],
)
def test_highest_ranked_scope_wins(scopes, expected) -> None:
    grants = [grant("allow", scope, {"departmentId": "x"} if scope == "custom" else None) for scope in scopes]
    policy = aggregate(grants, "students", "read")
    assert policy.allowed is True
    assert policy.scope is expected
    assert policy.conditions == []


def test_no_assignments_is_implicit_deny() -> None:
    policy = aggregate([], "fees", "update")
    assert policy.allowed is False
    assert policy.reason is DecisionReason.IMPLICIT_DENY


def test_custom_without_conditions_is_void() -> None:
    assert aggregate([grant("allow", "custom")], "students", "read").allowed is False

    with_void = aggregate([grant("allow", "self"), grant("allow", "custom")], "students", "read")
    assert with_void.scope is Scope.SELF


def test_custom_used_only_when_nothing_ranked_remains() -> None:
    policy = aggregate(
        [
            grant("allow", "custom", {"departmentId": "<userDept>"}),
            grant("allow", "custom"),
            grant("allow", "custom", {"userId": "<userId>"}),
        ],
        "students",
        "read",
    )
    assert policy.allowed is True
    assert policy.scope is Scope.CUSTOM
    assert policy.conditions == [{"departmentId": "<userDept>"}, {"userId": "<userId>"}]


def test_granted_by_lists_roles_at_the_winning_scope() -> None:
    policy = aggregate(
        [
            grant("allow", "owned", role="PARENT"),
            grant("allow", "self", role="STUDENT"),
            grant("allow", "owned", role="TEACHER"),
        ],
        "students",
        "read",
    )
    assert policy.scope is Scope.OWNED
    assert policy.granted_by == ("PARENT", "TEACHER")


def test_unknown_scope_fails_closed() -> None:
    with pytest.raises(UnknownScope):
        aggregate([grant("allow", "tenant"), grant("allow", "everything")], "students", "read")


# ─────────────────────────────────────────
# Resolution against stored policies
# ─────────────────────────────────────────
def test_deny_on_one_role_overrides_allow_on_another(tenant, make_role, member, engine) -> None:
    make_role(tenant, "TEACHER", ("attendance_staff", "read", "allow", "owned"))
    make_role(tenant, "STAFF", ("attendance_staff", "read", "deny", "self"))
    _, ctx = member(tenant, "TEACHER", "STAFF")

    policy = engine.decide(ctx, "attendance_staff", "read")

    assert ctx.role_codes == ("STAFF", "TEACHER")
    assert policy.allowed is False
    assert policy.reason is DecisionReason.EXPLICIT_DENY


def test_zero_roles_is_implicit_deny(tenant, catalog, member, engine) -> None:
    _, ctx = member(tenant)
    policy = engine.decide(ctx, "students", "read")
    assert ctx.role_codes == ()
    assert policy.reason is DecisionReason.IMPLICIT_DENY


def test_system_role_sharing_a_code_contributes(tenant, make_role, member, engine) -> None:
    make_role(None, "TEACHER", ("timetable", "read", "allow", "tenant"), is_system_role=True)
    make_role(tenant, "TEACHER", ("students", "read", "allow", "owned"))
    _, ctx = member(tenant, "TEACHER")

    assert engine.decide(ctx, "timetable", "read").scope is Scope.TENANT
    assert engine.decide(ctx, "students", "read").scope is Scope.OWNED


def test_other_tenants_role_with_same_code_is_ignored(tenant, other_tenant, make_role, member, engine) -> None:
    make_role(tenant, "TEACHER", ("students", "read", "allow", "owned"))
    make_role(other_tenant, "TEACHER", ("students", "read", "allow", "tenant"))
    _, ctx = member(tenant, "TEACHER")

    assert engine.decide(ctx, "students", "read").scope is Scope.OWNED


def test_inactive_role_grants_nothing(tenant, make_role, member, engine) -> None:
    role = make_role(tenant, "LIBRARIAN", ("library", "read", "allow", "tenant"))
    user, _ = member(tenant, "LIBRARIAN")
    Role.objects.filter(pk=role.pk).update(is_active=False)

    ctx = UserContext(user_id=user.pk, tenant_id=tenant.pk, role_codes=("LIBRARIAN",))
    assert engine.decide(ctx, "library", "read").allowed is False


def test_stored_unknown_scope_raises(tenant, make_role, member, engine, catalog) -> None:
    role = make_role(tenant, "ACCOUNTANT")
    RolePermission.objects.create(role=role, permission=catalog[("fees", "read")], effect="allow", scope="global")
    _, ctx = member(tenant, "ACCOUNTANT")

    with pytest.raises(UnknownScope):
        engine.decide(ctx, "fees", "read")


def test_summary_lists_every_granted_pair(tenant, make_role, member, engine) -> None:
    make_role(
        tenant,
        "PRINCIPAL",
        ("students", "read", "allow", "tenant"),
        ("students", "delete", "deny", "tenant"),
    )
    _, ctx = member(tenant, "PRINCIPAL")

    summary = {(p.resource, p.action): p.allowed for p in engine.summarize(ctx)}
    assert summary == {("students", "delete"): False, ("students", "read"): True}
