"""
Policy Aggregator - turns every policy assignment a set of roles holds for
one (resource, action) into a single decision.

Precedence:
    1. any deny wins, and a deny never contributes a scope
    2. no allow at all is an implicit deny
    3. otherwise the highest ranked scope among the allows (self < owned < tenant)
    4. custom is only used when no ranked scope exists, and only for
       assignments that carry conditions; custom without conditions is void
"""

import logging
from enum import Enum

from django.db.models import Q

from .constants import SCOPE_RANK, DecisionReason, Effect, RoleCode, Scope
from .context import ResolvedPolicy
from .exceptions import UnknownScope
from .models import RolePermission

logger = logging.getLogger(__name__)


def _value(item):
    return item.value if isinstance(item, Enum) else str(item)


def _parse_scope(raw):
    try:
        return Scope(raw)
    except ValueError:
        raise UnknownScope(raw)


def _granting_roles(assignments):
    codes = {
        RoleCode(assignment.role.code)
        for assignment in assignments
        if getattr(assignment, "role", None) is not None
    }
    return tuple(sorted(codes))


def aggregate(assignments, resource, action) -> ResolvedPolicy:
    """
    Pure precedence rules over objects exposing `effect`, `scope` and
    `conditions`. Raises UnknownScope for a scope outside the defined set.
    Assignments that also carry `role` report which roles granted the scope.
    """
    resource, action = _value(resource), _value(action)
    assignments = list(assignments)

    scopes = [_parse_scope(a.scope) for a in assignments]

    if any(_value(a.effect) == Effect.DENY.value for a in assignments):
        return ResolvedPolicy.deny(resource, action, DecisionReason.EXPLICIT_DENY)

    ranked = []
    custom = []
    for assignment, scope in zip(assignments, scopes):
        if _value(assignment.effect) != Effect.ALLOW.value:
            continue
        if scope is Scope.CUSTOM:
            if assignment.conditions:
                custom.append(assignment)
            continue
        ranked.append((assignment, scope))

    if ranked:
        best = max((scope for _, scope in ranked), key=SCOPE_RANK.__getitem__)
        granted_by = _granting_roles(a for a, scope in ranked if scope is best)
        return ResolvedPolicy(
            resource, action, True, DecisionReason.ALLOWED, best, granted_by=granted_by
        )

    if custom:
        return ResolvedPolicy(
            resource,
            action,
            True,
            DecisionReason.ALLOWED,
            Scope.CUSTOM,
            [dict(a.conditions) for a in custom],
            granted_by=_granting_roles(custom),
        )

    return ResolvedPolicy.deny(resource, action, DecisionReason.IMPLICIT_DENY)


class PolicyAggregator:
    def __init__(self, audit=None):
        self.audit = audit

    def fetch_assignments(self, role_codes, tenant_id, resource, action):
        """
        Policy rows for the given codes. A tenant role and a system role that
        share a code both contribute.
        """
        return list(
            RolePermission.objects.filter(
                role__code__in=[str(code) for code in role_codes],
                role__is_active=True,
                permission__resource=resource,
                permission__action=action,
            )
            .filter(Q(role__tenant_id=tenant_id) | Q(role__is_system_role=True))
            .select_related("role")
        )

    def resolve(self, ctx, resource, action) -> ResolvedPolicy:
        resource, action = _value(resource), _value(action)

        if not ctx.role_codes:
            policy = ResolvedPolicy.deny(resource, action, DecisionReason.IMPLICIT_DENY)
            self._emit(ctx, policy, detail="no_roles")
            return policy

        assignments = self.fetch_assignments(ctx.role_codes, ctx.tenant_id, resource, action)
        try:
            policy = aggregate(assignments, resource, action)
        except UnknownScope as exc:
            logger.error(
                f"Integrity fault: unknown scope {exc.scope!r} on {resource}:{action} "
                f"for roles {list(ctx.role_codes)}"
            )
            self._emit(
                ctx,
                ResolvedPolicy.deny(resource, action, DecisionReason.UNKNOWN_SCOPE),
                detail=str(exc.scope),
            )
            raise

        detail = None
        if not assignments:
            detail = "no_assignments"
        elif policy.reason is DecisionReason.IMPLICIT_DENY:
            detail = "void_custom_scope"
        self._emit(ctx, policy, detail=detail)
        return policy

    def _emit(self, ctx, policy, detail=None):
        if self.audit is None:
            return
        self.audit.record_decision(ctx, policy, detail=detail)

    def summarize(self, ctx):
        """
        Decisions for every (resource, action) the caller's roles mention,
        computed from one query. Used for display only; access checks go
        through `resolve`.
        """
        if not ctx.role_codes:
            return []
        rows = (
            RolePermission.objects.filter(
                role__code__in=[str(code) for code in ctx.role_codes],
                role__is_active=True,
            )
            .filter(Q(role__tenant_id=ctx.tenant_id) | Q(role__is_system_role=True))
            .select_related("permission", "role")
        )
        grouped = {}
        for row in rows:
            grouped.setdefault((row.permission.resource, row.permission.action), []).append(row)
        return [aggregate(grouped[key], *key) for key in sorted(grouped)]
