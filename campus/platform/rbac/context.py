"""
Request-scoped authorization values. Built per request, never persisted.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .constants import DecisionReason, RoleCode, Scope


@dataclass(frozen=True)
class UserContext:
    """Who is calling and which roles they hold in which tenant."""

    user_id: Any
    tenant_id: Any
    role_codes: Tuple[RoleCode, ...] = ()
    # Profile attributes used by custom-scope placeholders (<userDept>, <user.x>)
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def has_role(self, code) -> bool:
        return RoleCode(code) in self.role_codes


@dataclass(frozen=True)
class ResolvedPolicy:
    """
    The outcome of aggregating every policy assignment for one
    (resource, action) across a set of roles.
    """

    resource: str
    action: str
    allowed: bool
    reason: DecisionReason
    scope: Optional[Scope] = None
    conditions: List[Dict[str, Any]] = field(default_factory=list)
    # Roles whose allow produced `scope`; ownership is evaluated for these only
    granted_by: Tuple[RoleCode, ...] = ()

    @classmethod
    def deny(cls, resource, action, reason):
        return cls(resource=resource, action=action, allowed=False, reason=reason)

    def as_dict(self):
        return {
            "resource": self.resource,
            "action": self.action,
            "allowed": self.allowed,
            "reason": self.reason.value,
            "scope": self.scope.value if self.scope else None,
            "conditions": self.conditions,
        }
