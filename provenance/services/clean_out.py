# provenance/services/clean_out.py
"""
Clean out: empty selected slots of one labware in place, recording an
action for every sample removed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from provenance.addresses import Address, describe_addresses
from provenance.models import Action, Labware, OperationType, OperationTypeFlag, Work
from provenance.problems import ProblemSink, RequestValidationError, distinct
from provenance.repositories import LabwareRepo, SlotRepo
from provenance.services.operations import OperationResult, OperationService, operation_type_name
from provenance.services.transactions import transact
from provenance.services.work import WorkService
from provenance.validation import ValidationHelper

logger = logging.getLogger(__name__)


@dataclass
class CleanOutRequest:
    barcode: Optional[str] = None
    addresses: List[Optional[Address]] = field(default_factory=list)
    work_number: Optional[str] = None


class CleanOutService:
    def __init__(
        self,
        *,
        labware_repo: Optional[LabwareRepo] = None,
        slot_repo: Optional[SlotRepo] = None,
        op_service: Optional[OperationService] = None,
        work_service: Optional[WorkService] = None,
    ):
        self.labware_repo = labware_repo or LabwareRepo()
        self.slot_repo = slot_repo or SlotRepo()
        self.op_service = op_service or OperationService()
        self.work_service = work_service or WorkService()

    def helper(self, problems: ProblemSink) -> ValidationHelper:
        return ValidationHelper(problems, labware_repo=self.labware_repo, work_service=self.work_service)

    # ===============================================================
    # Entry point
    # ===============================================================
    def perform(self, user, request: Optional[CleanOutRequest]) -> OperationResult:
        return transact("Clean out", self._perform, user, request)

    def _perform(self, user, request: Optional[CleanOutRequest]) -> OperationResult:
        problems = ProblemSink()
        if user is None:
            problems.add("No user supplied.")
        if request is None:
            problems.add("No request supplied.")
            raise RequestValidationError(problems)

        val = self.helper(problems)
        op_type = val.check_op_type(operation_type_name("clean_out"), [OperationTypeFlag.IN_PLACE])
        work = self.work_service.validate_usable_work(problems, request.work_number)
        lw = self.load_labware(val, request.barcode)
        self.check_addresses(problems, lw, request.addresses)

        if problems:
            logger.info("Clean out rejected with %d problem(s)", len(problems))
            raise RequestValidationError(problems)

        return self.record(user, op_type, work, lw, request.addresses)

    # ===============================================================
    # Validation
    # ===============================================================
    def load_labware(self, val: ValidationHelper, barcode: Optional[str]) -> Optional[Labware]:
        labware = val.check_labware([barcode], for_update=True)
        return labware.get((barcode or "").strip().upper())

    def check_addresses(self, problems: ProblemSink, lw: Optional[Labware], addresses) -> None:
        if not addresses:
            problems.add("No slot addresses supplied.")
            return
        unique: List[Address] = []
        repeated: List[Address] = []
        any_null = False
        for ad in addresses:
            if ad is None:
                any_null = True
            elif ad in unique:
                repeated.append(ad)
            else:
                unique.append(ad)
        if any_null:
            problems.add("Null supplied as slot address.")
        if repeated:
            problems.add(f"Repeated slot address: {describe_addresses(distinct(repeated))}.")
        if lw is not None and unique:
            self.check_slots(problems, lw, unique)

    def check_slots(self, problems: ProblemSink, lw: Labware, addresses: List[Address]) -> None:
        invalid = []
        empty = []
        for ad in addresses:
            slot = lw.opt_slot(ad)
            if slot is None:
                invalid.append(ad)
            elif not slot.samples:
                empty.append(ad)
        if invalid:
            problems.add(f"No slot found in labware {lw.barcode} at address: {describe_addresses(invalid)}.")
        if empty:
            problems.add(f"Slot in labware {lw.barcode} is empty: {describe_addresses(empty)}.")

    # ===============================================================
    # Recording
    # ===============================================================
    def record(
        self,
        user,
        op_type: OperationType,
        work: Work,
        lw: Labware,
        addresses: List[Address],
    ) -> OperationResult:
        slots = [lw.get_slot(ad) for ad in addresses]
        actions = [
            Action(source=slot, destination=slot, source_sample=sample, sample=sample)
            for slot in slots
            for sample in slot.samples
        ]
        op = self.op_service.create_operation(op_type, user, actions)
        for slot in slots:
            self.slot_repo.set_samples(slot, [])
        self.work_service.link(work, [op])
        return OperationResult([op], self.labware_repo.reload([lw]))

