"""
Role Resolver - maps (user, tenant) to the role codes currently held.

Results are cached per (user, tenant) in the configured Django cache. The
cache is best-effort: any backend error is logged and treated as a miss.
"""

import logging
from typing import List, Optional

from django.contrib.auth import get_user_model
from django.db.models import Q

from .constants import DEFAULT_ROLE_CACHE_TTL, ROLE_CACHE_KEY, RoleCode
from .models import UserRole

logger = logging.getLogger(__name__)


class RoleResolver:
    def __init__(self, cache=None, ttl: int = DEFAULT_ROLE_CACHE_TTL):
        self.cache = cache
        self.ttl = ttl

    @staticmethod
    def cache_key(user_id, tenant_id) -> str:
        return ROLE_CACHE_KEY.format(user_id=user_id, tenant_id=tenant_id)

    def resolve_roles(self, user_id, tenant_id) -> List[RoleCode]:
        """
        Return the sorted role codes the user holds in the tenant.

        A user that does not exist, is inactive, or belongs to another
        tenant resolves to no roles; callers treat that as "no access".
        """
        key = self.cache_key(user_id, tenant_id)
        cached = self._cache_get(key)
        if cached is not None:
            return [RoleCode(code) for code in cached]

        codes = self._load_roles(user_id, tenant_id)
        if codes:
            self._cache_set(key, [str(code) for code in codes])
        return codes

    def invalidate(self, user_id, tenant_id) -> None:
        """Drop the cached roles for (user, tenant). Blocking."""
        if self.cache is None:
            return
        key = self.cache_key(user_id, tenant_id)
        try:
            self.cache.delete(key)
        except Exception as e:
            logger.error(f"Role cache invalidation failed for {key}: {e}")

    def _load_roles(self, user_id, tenant_id) -> List[RoleCode]:
        user = self._get_member(user_id, tenant_id)
        if user is None:
            return []

        codes = (
            UserRole.objects.filter(user_id=user.pk, role__is_active=True)
            .filter(Q(tenant_id=tenant_id) | Q(tenant__isnull=True, role__is_system_role=True))
            .filter(Q(role__tenant_id=tenant_id) | Q(role__is_system_role=True))
            .values_list("role__code", flat=True)
            .distinct()
        )
        return sorted({RoleCode(code) for code in codes})

    def _get_member(self, user_id, tenant_id):
        User = get_user_model()
        user = User.objects.filter(pk=user_id).first()
        if user is None or not user.is_active:
            logger.warning(f"Role resolution for unknown or inactive user {user_id}")
            return None
        # Platform users (no tenant) may act in any tenant through system roles.
        if user.tenant_id is not None and str(user.tenant_id) != str(tenant_id):
            logger.warning(f"User {user_id} is not a member of tenant {tenant_id}")
            return None
        return user

    def _cache_get(self, key) -> Optional[list]:
        if self.cache is None:
            return None
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning(f"Role cache read failed for {key}, falling back to database: {e}")
            return None

    def _cache_set(self, key, value) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, value, timeout=self.ttl)
        except Exception as e:
            logger.warning(f"Role cache write failed for {key}: {e}")
