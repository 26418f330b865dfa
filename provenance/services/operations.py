# provenance/services/operations.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from django.conf import settings
from django.db import transaction

from provenance.models import Action, Labware, Operation, OperationType, Sample, Slot
from provenance.repositories import ActionRepo, OperationRepo

logger = logging.getLogger(__name__)


def operation_type_name(key: str) -> str:
    """Configured operation type name for a feature (see PROVENANCE_OPERATION_TYPES)."""
    return settings.PROVENANCE_OPERATION_TYPES[key]


@dataclass
class OperationResult:
    operations: List[Operation] = field(default_factory=list)
    labware: List[Labware] = field(default_factory=list)


# ===============================================================
# Operation recorder
# ===============================================================
class OperationService:
    def __init__(self, *, operation_repo: Optional[OperationRepo] = None, action_repo: Optional[ActionRepo] = None):
        self.operation_repo = operation_repo or OperationRepo()
        self.action_repo = action_repo or ActionRepo()

    def create_operation(
        self,
        op_type: OperationType,
        user,
        actions: Sequence,
        *,
        mutator: Optional[Callable[[Operation], None]] = None,
    ) -> Operation:
        """
        Record an operation together with its actions.

        `actions` may be unsaved Action instances or anything exposing
        source, destination, source_sample and sample. They are copied onto
        the new operation; the caller's objects are left untouched.
        """
        actions = list(actions or [])
        if not actions:
            raise ValueError("No actions supplied to create operation.")

        with transaction.atomic():
            op = Operation(operation_type=op_type, user=user)
            if mutator is not None:
                mutator(op)
            op = self.operation_repo.save(op)
            self.action_repo.save_all(
                [
                    Action(
                        operation=op,
                        source=ac.source,
                        destination=ac.destination,
                        source_sample=ac.source_sample,
                        sample=ac.sample,
                    )
                    for ac in actions
                ]
            )
            op = self.operation_repo.reload(op.pk)

        logger.info(
            "Recorded operation %s (%s) with %d action(s)",
            op.pk,
            op_type.name,
            len(actions),
        )
        return op

    def create_operation_from_slots(
        self,
        op_type: OperationType,
        user,
        source: Slot,
        destination: Slot,
        sample: Sample,
    ) -> Operation:
        action = Action(source=source, destination=destination, source_sample=sample, sample=sample)
        return self.create_operation(op_type, user, [action])

    def create_operation_in_place(
        self,
        op_type: OperationType,
        user,
        labware: Labware,
        *,
        mutator: Optional[Callable[[Operation], None]] = None,
    ) -> Operation:
        """One action per sample entry currently in the labware, each slot to itself."""
        actions = [
            Action(source=slot, destination=slot, source_sample=sample, sample=sample)
            for slot in labware.slot_list
            for sample in slot.samples
        ]
        return self.create_operation(op_type, user, actions, mutator=mutator)
