"""
Audit Sink - the single emission point for authorization events.

Events go to a structured logger and, when enabled, to the AuditLog table.
A failing sink is logged and never blocks the decision.
"""

import logging

from django.db import transaction

logger = logging.getLogger(__name__)


class AuditSink:
    def __init__(self, logger_name="campus.audit", persist=True):
        self.audit_logger = logging.getLogger(logger_name)
        self.persist = persist

    def record(self, event: dict) -> None:
        try:
            self.audit_logger.info(
                f"{event['event']} {event['decision']} {event['resource']}:{event['action']} "
                f"user={event['user_id']} tenant={event['tenant_id']} reason={event['reason']}",
                extra=event,
            )
            if self.persist:
                self._persist(event)
        except Exception:
            logger.exception(f"Audit sink failed for event {event.get('event')}")

    def record_decision(self, ctx, policy, detail=None) -> None:
        self.record(self._event("decision", ctx, policy, detail=detail))

    def record_filter(self, ctx, policy, entity_type, operation, detail=None) -> None:
        event = self._event("filter", ctx, policy, detail=detail)
        event["entity_type"] = entity_type
        event["operation"] = getattr(operation, "value", operation)
        self.record(event)

    @staticmethod
    def _event(kind, ctx, policy, detail=None):
        return {
            "event": f"rbac.{kind}",
            "resource": policy.resource,
            "action": policy.action,
            "user_id": str(ctx.user_id),
            "tenant_id": str(ctx.tenant_id),
            "role_codes": [str(code) for code in ctx.role_codes],
            "decision": "allow" if policy.allowed else "deny",
            "reason": policy.reason.value,
            "scope": policy.scope.value if policy.scope else None,
            "detail": detail,
        }

    @staticmethod
    def _persist(event):
        from campus.core.services.audit import record_audit

        metadata = {
            key: event[key]
            for key in ("role_codes", "scope", "detail", "entity_type", "operation")
            if event.get(key) is not None
        }
        # Savepoint so a failed insert cannot poison the caller's transaction.
        with transaction.atomic():
            record_audit(
                actor_id=event["user_id"],
                tenant_id=event["tenant_id"],
                action=event["action"],
                resource=event["resource"],
                decision=event["decision"],
                reason=event["reason"],
                description=event["event"],
                metadata=metadata,
            )
