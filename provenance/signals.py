# provenance/signals.py
from __future__ import annotations

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from provenance.models import AuditLog, Operation

logger = logging.getLogger(__name__)


def _audit_enabled() -> bool:
    return bool(getattr(settings, "PROVENANCE_AUDIT_OPERATIONS", True))


# ===============================================================
# Operation audit
# ===============================================================
@receiver(post_save, sender=Operation)
def audit_operation_created(sender, instance, created, **kwargs):
    """One audit row per recorded operation. Operations are never edited."""
    if not created or kwargs.get("raw") or not _audit_enabled():
        return

    op_type = instance.operation_type
    AuditLog.objects.create(
        user=instance.user,
        action=f"OPERATION {op_type.name} {instance.pk}",
        details={
            "operation_id": instance.pk,
            "operation_type": op_type.name,
            "performed": instance.performed.isoformat(),
        },
    )
    logger.debug("Audit row written for operation %s", instance.pk)
