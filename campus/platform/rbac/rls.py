"""
RLS Query Translator - turns a resolved decision into a row filter.

Every filter is pinned to the caller's tenant and excludes soft-deleted rows,
whatever the scope. Denied reads match nothing; denied writes raise.
"""

import logging
from dataclasses import replace

from django.db.models import Q

from .constants import DecisionReason, OperationKind, Scope
from .exceptions import ExplicitDeny, ImplicitDeny, UnknownScope
from .ownership import NO_ROWS, get_rule

logger = logging.getLogger(__name__)


def base_filter(ctx) -> Q:
    return Q(tenant_id=ctx.tenant_id) & Q(deleted_at__isnull=True)


class QueryTranslator:
    def __init__(self, audit=None):
        self.audit = audit

    def build_filter(self, policy, entity_type, ctx, operation=OperationKind.READ) -> Q:
        operation = OperationKind(getattr(operation, "value", operation))
        rule = get_rule(entity_type)

        if not policy.allowed:
            self._emit(ctx, policy, entity_type, operation)
            if operation is not OperationKind.READ:
                raise deny_error(policy)
            return base_filter(ctx) & NO_ROWS

        scope_filter = self._scope_filter(rule, policy, ctx, operation)
        self._emit(ctx, policy, entity_type, operation)
        return base_filter(ctx) & scope_filter

    def _scope_filter(self, rule, policy, ctx, operation) -> Q:
        scope = policy.scope
        if scope is Scope.TENANT:
            return Q()
        if scope is Scope.SELF:
            return rule.self_filter(ctx)
        if scope is Scope.OWNED:
            return rule.owned_filter(granting_context(ctx, policy), operation)
        if scope is Scope.CUSTOM:
            return rule.condition_filter(ctx, policy.conditions)
        logger.error(f"Cannot translate scope {scope!r} for {rule.entity_type}")
        raise UnknownScope(scope)

    def _emit(self, ctx, policy, entity_type, operation):
        if self.audit is None:
            return
        self.audit.record_filter(ctx, policy, entity_type, operation)


def granting_context(ctx, policy):
    """The caller narrowed to the roles that granted the policy's scope."""
    if not policy.granted_by:
        return ctx
    return replace(ctx, role_codes=policy.granted_by)


def deny_error(policy):
    if policy.reason is DecisionReason.EXPLICIT_DENY:
        return ExplicitDeny(policy.resource, policy.action)
    return ImplicitDeny(policy.resource, policy.action)
