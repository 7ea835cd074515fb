"""Audit logging primitives."""
from django.db import models
from datetime import timezone

from .base import CoreBaseModel


class AuditLog(CoreBaseModel):
    """Tracks authorization decisions and data-access filter applications."""

    actor_id = models.UUIDField(null=True, blank=True, db_index=True)
    tenant_id = models.UUIDField(null=True, blank=True)

    action = models.CharField(max_length=64)
    resource = models.CharField(max_length=100, blank=True)
    decision = models.CharField(max_length=16, blank=True)
    reason = models.CharField(max_length=64, blank=True)
    description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "core_audit_logs"
        indexes = [
            models.Index(fields=["tenant_id", "action"]),
            models.Index(fields=["tenant_id", "resource", "decision"]),
            models.Index(fields=["created_at"]),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        ts = self.created_at.astimezone(timezone.utc) if self.created_at else ""
        actor = self.actor_id or "system"
        return f"[{ts}] {actor} -> {self.resource}:{self.action} ({self.decision})"
