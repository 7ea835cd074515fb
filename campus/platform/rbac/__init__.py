"""
Role-Based Access Control (RBAC) with row-level security.

Request flow: RoleResolver -> PolicyAggregator -> QueryTranslator, with every
decision and filter reported to the AuditSink. The engine holding them is
built when the app is ready.
"""

# Models and the engine are imported lazily to avoid app-loading cycles:
#   from campus.platform.rbac.engine import get_engine
#   from campus.platform.rbac.repository import RLSRepository
#   from campus.platform.rbac.permissions import RBACPermission

from .constants import (
    Action,
    DecisionReason,
    DefaultRoles,
    Effect,
    OperationKind,
    Resources,
    RoleCode,
    Scope,
)

__all__ = [
    "Action",
    "DecisionReason",
    "DefaultRoles",
    "Effect",
    "OperationKind",
    "Resources",
    "RoleCode",
    "Scope",
]
