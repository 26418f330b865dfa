# provenance/models/operations.py

import enum

from django.conf import settings
from django.db import models
from django.utils import timezone

from provenance.models.labware import Labware, Sample, Slot, TimeStampedModel


# ============================================================
# Operation type
# ============================================================
class OperationTypeFlag(enum.IntFlag):
    IN_PLACE = 1
    SOURCE_IS_BLOCK = 2


class OperationType(models.Model):
    name = models.CharField(max_length=64, unique=True)
    flags = models.PositiveIntegerField(default=0)

    def has(self, flag: OperationTypeFlag) -> bool:
        return bool(self.flags & flag)

    def __str__(self):
        return self.name


# ============================================================
# Operation / Action
# ============================================================
class Operation(models.Model):
    """
    A recorded event. Created once together with its actions and never edited.
    """

    operation_type = models.ForeignKey(OperationType, on_delete=models.PROTECT, related_name="operations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="operations",
    )
    performed = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["performed", "id"]

    @property
    def action_list(self) -> list["Action"]:
        return list(self.actions.all())

    def __str__(self):
        return f"{self.operation_type.name} {self.pk}"


class Action(models.Model):
    """
    Provenance edge: within one operation, source_sample in the source slot
    became sample in the destination slot. Source may equal destination.
    """

    operation = models.ForeignKey(Operation, on_delete=models.CASCADE, related_name="actions")
    source = models.ForeignKey(Slot, on_delete=models.PROTECT, related_name="source_actions")
    destination = models.ForeignKey(Slot, on_delete=models.PROTECT, related_name="destination_actions")
    source_sample = models.ForeignKey(Sample, on_delete=models.PROTECT, related_name="source_actions")
    sample = models.ForeignKey(Sample, on_delete=models.PROTECT, related_name="actions")

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return (
            f"{self.source.address}->{self.destination.address} "
            f"{self.source_sample_id}->{self.sample_id}"
        )


# ============================================================
# Work
# ============================================================
class Work(TimeStampedModel):
    """Unit of work that operations are accounted against."""

    class Status(models.TextChoices):
        UNSTARTED = "unstarted", "Unstarted"
        ACTIVE = "active", "Active"
        PAUSED = "paused", "Paused"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"
        WITHDRAWN = "withdrawn", "Withdrawn"

    work_number = models.CharField(max_length=32, unique=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.UNSTARTED, db_index=True)
    operations = models.ManyToManyField(Operation, related_name="works", blank=True)

    def save(self, *args, **kwargs):
        self.work_number = (self.work_number or "").strip().upper()
        return super().save(*args, **kwargs)

    @property
    def is_usable(self) -> bool:
        return self.status == self.Status.ACTIVE

    def __str__(self):
        return self.work_number


# ============================================================
# Comments
# ============================================================
class Comment(models.Model):
    text = models.CharField(max_length=255)
    category = models.CharField(max_length=64)
    enabled = models.BooleanField(default=True)

    class Meta:
        ordering = ["category", "id"]
        unique_together = [("category", "text")]

    def __str__(self):
        return f"{self.category}: {self.text}"


class OperationComment(models.Model):
    comment = models.ForeignKey(Comment, on_delete=models.PROTECT, related_name="operation_comments")
    operation = models.ForeignKey(Operation, on_delete=models.CASCADE, related_name="comments")
    sample = models.ForeignKey(Sample, on_delete=models.PROTECT, null=True, blank=True)
    slot = models.ForeignKey(Slot, on_delete=models.PROTECT, null=True, blank=True)

    class Meta:
        ordering = ["id"]


# ============================================================
# Destruction
# ============================================================
class DestructionReason(models.Model):
    text = models.CharField(max_length=255, unique=True)
    enabled = models.BooleanField(default=True)

    def __str__(self):
        return self.text


class Destruction(models.Model):
    labware = models.ForeignKey(Labware, on_delete=models.PROTECT, related_name="destructions")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT)
    destroyed = models.DateTimeField(default=timezone.now)
    reason = models.ForeignKey(DestructionReason, on_delete=models.PROTECT)

    class Meta:
        ordering = ["destroyed", "id"]

    def __str__(self):
        return f"{self.labware} destroyed: {self.reason}"


# ============================================================
# Audit
# ============================================================
class AuditLog(TimeStampedModel):
    """Track recorded events for compliance and traceability."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, db_index=True)
    action = models.CharField(max_length=255, db_index=True)
    details = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["action", "created_at"], name="audit_action_time_idx"),
        ]

    def __str__(self):
        who = self.user.get_username() if self.user else "system"
        return f"{self.created_at} - {who} - {self.action}"
