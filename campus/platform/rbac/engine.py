"""
Authorization engine - one explicitly constructed object holding the role
resolver, policy aggregator, query translator and audit sink.

Built once when the rbac app is ready; see `configure_engine` / `get_engine`.
"""

import logging

from django.conf import settings
from django.core.cache import caches
from django.core.exceptions import ImproperlyConfigured

from .audit import AuditSink
from .constants import DEFAULT_ROLE_CACHE_TTL, Action, OperationKind
from .context import UserContext
from .exceptions import UserContextMissing
from .ownership import get_rule
from .policy import PolicyAggregator
from .resolver import RoleResolver
from .rls import QueryTranslator, deny_error

logger = logging.getLogger(__name__)

_engine = None


class AuthorizationEngine:
    def __init__(self, resolver, aggregator, translator, audit=None):
        self.resolver = resolver
        self.aggregator = aggregator
        self.translator = translator
        self.audit = audit

    def build_user_context(self, user_id, tenant_id, attributes=None) -> UserContext:
        """Roles always come from the store, never from the credential."""
        if not user_id or not tenant_id:
            raise UserContextMissing()
        role_codes = self.resolver.resolve_roles(user_id, tenant_id)
        return UserContext(
            user_id=user_id,
            tenant_id=tenant_id,
            role_codes=tuple(role_codes),
            attributes=dict(attributes or {}),
        )

    def context_for_user(self, user, tenant_id=None) -> UserContext:
        """
        Build the context for an authenticated user. Tenant members always act
        in their own tenant; platform users must name the tenant explicitly.
        """
        if user is None or not getattr(user, "is_authenticated", False):
            raise UserContextMissing()
        if user.tenant_id is not None:
            tenant_id = user.tenant_id
        attributes = {
            "departmentId": user.department_id,
            "email": user.email,
        }
        return self.build_user_context(user.pk, tenant_id, attributes)

    def decide(self, ctx, resource, action):
        return self.aggregator.resolve(ctx, resource, action)

    def authorize(self, ctx, resource, action):
        policy = self.decide(ctx, resource, action)
        if not policy.allowed:
            raise deny_error(policy)
        return policy

    def enforce_read_filter(self, ctx, entity_type, operation=OperationKind.READ, resource=None):
        """
        Row filter for `operation` on `entity_type`. The decision is taken on
        the entity's resource with the matching action.
        """
        operation = OperationKind(getattr(operation, "value", operation))
        resource = resource or get_rule(entity_type).resource
        policy = self.decide(ctx, resource, Action(operation.value))
        return self.translator.build_filter(policy, entity_type, ctx, operation)

    def summarize(self, ctx):
        return self.aggregator.summarize(ctx)

    def invalidate(self, user_id, tenant_id):
        self.resolver.invalidate(user_id, tenant_id)


def build_engine(cache=None, ttl=None, audit=None) -> AuthorizationEngine:
    """Build an engine from settings. Arguments override the settings."""
    if cache is None:
        alias = getattr(settings, "RBAC_ROLE_CACHE_ALIAS", "default")
        cache = caches[alias] if alias else None
    if ttl is None:
        ttl = getattr(settings, "RBAC_ROLE_CACHE_TTL", DEFAULT_ROLE_CACHE_TTL)
    if audit is None:
        audit = AuditSink(
            logger_name=getattr(settings, "RBAC_AUDIT_LOGGER", "campus.audit"),
            persist=getattr(settings, "RBAC_AUDIT_PERSIST", True),
        )
    return AuthorizationEngine(
        resolver=RoleResolver(cache=cache, ttl=ttl),
        aggregator=PolicyAggregator(audit=audit),
        translator=QueryTranslator(audit=audit),
        audit=audit,
    )


def configure_engine(engine) -> None:
    global _engine
    _engine = engine
    logger.info(f"Authorization engine configured (role cache: {engine.resolver.cache is not None})")


def get_engine() -> AuthorizationEngine:
    if _engine is None:
        raise ImproperlyConfigured("Authorization engine is not configured; is campus.platform.rbac installed?")
    return _engine
