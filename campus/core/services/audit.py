"""Helper functions for writing audit logs."""
from typing import Optional, Mapping, Any

from campus.core.models import AuditLog


def record_audit(*, actor_id=None, tenant_id=None, action: str, resource: str = "", decision: str = "", reason: str = "", description: str = "", metadata: Optional[Mapping[str, Any]] = None) -> AuditLog:
    metadata = dict(metadata or {})
    return AuditLog.objects.create(
        actor_id=actor_id,
        tenant_id=tenant_id,
        action=action,
        resource=resource,
        decision=decision,
        reason=reason,
        description=description,
        metadata=metadata,
    )
