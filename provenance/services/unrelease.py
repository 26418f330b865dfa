# provenance/services/unrelease.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from provenance.models import Labware, OperationType, Work
from provenance.problems import ProblemSink, RequestValidationError
from provenance.repositories import LabwareRepo, OperationTypeRepo, SlotRepo
from provenance.services.operations import OperationResult, OperationService, operation_type_name
from provenance.services.transactions import transact
from provenance.services.work import WorkService
from provenance.validation import LabwareValidator

logger = logging.getLogger(__name__)


@dataclass
class UnreleaseLabware:
    barcode: Optional[str]
    highest_section: Optional[int] = None
    work_number: Optional[str] = None


def current_highest_section(lw: Labware) -> Optional[int]:
    """Highest section recorded on any block slot; None if the labware is not a block."""
    values = [slot.block_highest_section or 0 for slot in lw.slot_list if slot.is_block]
    return max(values) if values else None


def highest_section_problem(lw: Labware, highest_section: int) -> Optional[str]:
    old = current_highest_section(lw)
    if old is None:
        return f"Cannot set the highest section number from labware {lw.barcode} because it is not a block."
    if highest_section < 0:
        return "Cannot set the highest section to a negative number."
    if old > highest_section:
        return f"For block {lw.barcode}, cannot reduce the highest section number from {old} to {highest_section}."
    return None


class UnreleaseService:
    def __init__(
        self,
        *,
        labware_repo: Optional[LabwareRepo] = None,
        slot_repo: Optional[SlotRepo] = None,
        op_type_repo: Optional[OperationTypeRepo] = None,
        op_service: Optional[OperationService] = None,
        work_service: Optional[WorkService] = None,
    ):
        self.labware_repo = labware_repo or LabwareRepo()
        self.slot_repo = slot_repo or SlotRepo()
        self.op_type_repo = op_type_repo or OperationTypeRepo()
        self.op_service = op_service or OperationService()
        self.work_service = work_service or WorkService()

    def perform(self, user, items: Optional[Sequence[UnreleaseLabware]]) -> OperationResult:
        return transact("Unrelease", self._perform, user, items)

    def _perform(self, user, items) -> OperationResult:
        problems = ProblemSink()
        if user is None:
            problems.add("No user supplied.")
        if items is None:
            problems.add("No request supplied.")
            raise RequestValidationError(problems)

        labware = self.load_labware(problems, items)
        labware_work = self.load_labware_work(problems, items)
        self.validate_request(problems, labware, items)

        name = operation_type_name("unrelease")
        op_type = self.op_type_repo.find_by_name(name)
        if op_type is None:
            problems.add(f'Operation type "{name}" not found.')

        if problems:
            logger.info("Unrelease rejected with %d problem(s)", len(problems))
            raise RequestValidationError(problems)

        updated = self.update_labware(items, labware)
        ops = self.record_ops(user, op_type, updated, labware_work)
        return OperationResult(ops, self.labware_repo.reload(updated))

    # ===============================================================
    # Validation
    # ===============================================================
    def load_labware(self, problems: ProblemSink, items) -> Dict[str, Labware]:
        if not items:
            problems.add("No labware specified.")
            return {}
        barcodes = [it.barcode for it in items if it.barcode]
        if len(barcodes) < len(items):
            problems.add("Null given as labware barcode.")
        if not barcodes:
            return {}
        val = LabwareValidator()
        val.load(self.labware_repo, barcodes, for_update=True)
        val.validate_unique()
        val.validate_non_empty()
        val.validate_state(lambda lw: not lw.released, "not released")
        val.validate_state(lambda lw: lw.destroyed, "destroyed")
        val.validate_state(lambda lw: lw.discarded, "discarded")
        problems.extend(val.errors)
        return {lw.barcode.upper(): lw for lw in val.labware}

    def load_labware_work(self, problems: ProblemSink, items) -> Dict[str, Work]:
        """Work is optional per item. Returns work keyed by upper-case labware barcode."""
        work_numbers = [it.work_number for it in items if it.work_number]
        if not work_numbers:
            return {}
        works = self.work_service.validate_usable_works(problems, work_numbers)
        out = {}
        for it in items:
            work = works.get(it.work_number.strip().upper()) if it.work_number else None
            if work is not None and it.barcode:
                out[it.barcode.strip().upper()] = work
        return out

    def validate_request(self, problems: ProblemSink, labware: Dict[str, Labware], items) -> None:
        for it in items:
            if not it.barcode or it.highest_section is None:
                continue
            lw = labware.get(it.barcode.strip().upper())
            if lw is None:
                continue
            problem = highest_section_problem(lw, it.highest_section)
            if problem:
                problems.add(problem)

    # ===============================================================
    # Recording
    # ===============================================================
    def update_labware(self, items, labware: Dict[str, Labware]) -> List[Labware]:
        updated = []
        for it in items:
            lw = labware[it.barcode.strip().upper()]
            lw.released = False
            if it.highest_section is not None:
                for slot in lw.slot_list:
                    if slot.is_block and slot.block_highest_section != it.highest_section:
                        slot.block_highest_section = it.highest_section
                        self.slot_repo.save(slot)
            updated.append(lw)
        self.labware_repo.save_all(updated)
        return updated

    def record_ops(self, user, op_type: OperationType, labware: List[Labware], labware_work: Dict[str, Work]):
        ops = []
        for lw in labware:
            op = self.op_service.create_operation_in_place(op_type, user, lw)
            work = labware_work.get(lw.barcode.upper())
            if work is not None:
                self.work_service.link(work, [op])
            ops.append(op)
        return ops
