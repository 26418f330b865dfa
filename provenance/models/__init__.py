from provenance.models.labware import (
    BioState,
    Labware,
    LabwareType,
    Sample,
    Slot,
    SlotSample,
    Tissue,
    TimeStampedModel,
)
from provenance.models.operations import (
    Action,
    AuditLog,
    Comment,
    Destruction,
    DestructionReason,
    Operation,
    OperationComment,
    OperationType,
    OperationTypeFlag,
    Work,
)

__all__ = [
    "Action",
    "AuditLog",
    "BioState",
    "Comment",
    "Destruction",
    "DestructionReason",
    "Labware",
    "LabwareType",
    "Operation",
    "OperationComment",
    "OperationType",
    "OperationTypeFlag",
    "Sample",
    "Slot",
    "SlotSample",
    "Tissue",
    "TimeStampedModel",
    "Work",
]
