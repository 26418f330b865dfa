# provenance/services/sectioning.py
"""
Sectioning: cut numbered sections from a block into destination slots.

Section numbers come from the block's counter under a row lock, so
concurrent requests on the same block never reuse a number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from provenance.addresses import Address, describe_addresses
from provenance.models import Action, Labware, OperationType, OperationTypeFlag, Sample, Slot, Work
from provenance.problems import ProblemSink, RequestValidationError, distinct_upper, join_items
from provenance.repositories import LabwareRepo, SampleRepo, SlotRepo
from provenance.services.block_sections import BlockSectionCounter
from provenance.services.operations import OperationResult, OperationService, operation_type_name
from provenance.services.transactions import transact
from provenance.services.work import WorkService
from provenance.validation import LabwareValidator, ValidationHelper

logger = logging.getLogger(__name__)


@dataclass
class SectionDestination:
    barcode: Optional[str]
    address: Optional[Address]


@dataclass
class SectionRequest:
    source_barcode: Optional[str] = None
    work_number: Optional[str] = None
    sections: List[SectionDestination] = field(default_factory=list)
    planned_section: Optional[int] = None


class SectionService:
    def __init__(
        self,
        *,
        labware_repo: Optional[LabwareRepo] = None,
        slot_repo: Optional[SlotRepo] = None,
        sample_repo: Optional[SampleRepo] = None,
        op_service: Optional[OperationService] = None,
        work_service: Optional[WorkService] = None,
        counter: Optional[BlockSectionCounter] = None,
    ):
        self.labware_repo = labware_repo or LabwareRepo()
        self.slot_repo = slot_repo or SlotRepo()
        self.sample_repo = sample_repo or SampleRepo()
        self.op_service = op_service or OperationService()
        self.work_service = work_service or WorkService()
        self.counter = counter or BlockSectionCounter(slot_repo=self.slot_repo)

    def perform(self, user, request: Optional[SectionRequest]) -> OperationResult:
        return transact("Section", self._perform, user, request)

    def _perform(self, user, request: Optional[SectionRequest]) -> OperationResult:
        problems = ProblemSink()
        if user is None:
            problems.add("No user supplied.")
        if request is None:
            problems.add("No request supplied.")
            raise RequestValidationError(problems)

        val = ValidationHelper(problems, labware_repo=self.labware_repo, work_service=self.work_service)
        op_type = val.check_op_type(
            operation_type_name("section"),
            [OperationTypeFlag.SOURCE_IS_BLOCK],
            [OperationTypeFlag.IN_PLACE],
        )
        work = self.work_service.validate_usable_work(problems, request.work_number)
        block_slot = self.load_block(problems, val, request.source_barcode)
        if request.planned_section is not None and request.planned_section < 0:
            problems.add("Planned section number cannot be negative.")
        destinations = self.load_destinations(problems, request)

        if problems:
            logger.info("Sectioning rejected with %d problem(s)", len(problems))
            raise RequestValidationError(problems)

        return self.record(user, op_type, work, block_slot, destinations, request)

    # ===============================================================
    # Validation
    # ===============================================================
    def load_block(self, problems: ProblemSink, val: ValidationHelper, barcode: Optional[str]) -> Optional[Slot]:
        labware = val.check_labware([barcode], for_update=True, single_sample=True)
        lw = labware.get((barcode or "").strip().upper())
        if lw is None:
            return None
        for slot in lw.slot_list:
            if slot.is_block and slot.samples:
                return slot
        problems.add(f"Labware {lw.barcode} is not a block.")
        return None

    def load_destinations(self, problems: ProblemSink, request: SectionRequest) -> Dict[str, Labware]:
        if not request.sections:
            problems.add("No sections specified.")
            return {}
        if any(not sec.barcode or not sec.barcode.strip() for sec in request.sections):
            problems.add("Destination barcode missing.")
        if any(sec.address is None for sec in request.sections):
            problems.add("Null supplied as slot address.")

        barcodes = distinct_upper(
            sec.barcode.strip() for sec in request.sections if sec.barcode and sec.barcode.strip()
        )
        if not barcodes:
            return {}
        source_bc = (request.source_barcode or "").strip().upper()
        if source_bc and source_bc in (bc.upper() for bc in barcodes):
            problems.add(f"Source labware cannot be used as a destination: {source_bc}.")

        dest_val = LabwareValidator(unique_required=False)
        dest_val.load(self.labware_repo, barcodes, for_update=True)
        dest_val.validate_active_destinations()
        problems.extend(dest_val.errors)
        labware = {lw.barcode.upper(): lw for lw in dest_val.labware}

        invalid: Dict[str, List[Address]] = {}
        for sec in request.sections:
            if not sec.barcode or sec.address is None:
                continue
            lw = labware.get(sec.barcode.strip().upper())
            if lw is not None and lw.opt_slot(sec.address) is None:
                bad = invalid.setdefault(lw.barcode, [])
                if sec.address not in bad:
                    bad.append(sec.address)
        for bc, addresses in invalid.items():
            problems.add(f"No slot found in labware {bc} at address: {describe_addresses(addresses)}.")
        return labware

    # ===============================================================
    # Recording
    # ===============================================================
    def record(
        self,
        user,
        op_type: OperationType,
        work: Work,
        block_slot: Slot,
        destinations: Dict[str, Labware],
        request: SectionRequest,
    ) -> OperationResult:
        source_sample = block_slot.samples[0]
        numbers = self.counter.allocate(block_slot, len(request.sections), request.planned_section)

        actions = []
        touched: List[Labware] = []
        for sec, section_number in zip(request.sections, numbers):
            lw = destinations[sec.barcode.strip().upper()]
            slot = lw.get_slot(sec.address)
            sample = self.sample_repo.save(
                Sample(
                    tissue=source_sample.tissue,
                    bio_state=source_sample.bio_state,
                    section=section_number,
                )
            )
            self.slot_repo.add_sample(slot, sample)
            actions.append(Action(source=block_slot, destination=slot, source_sample=source_sample, sample=sample))
            if lw not in touched:
                touched.append(lw)

        op = self.op_service.create_operation(op_type, user, actions)
        self.work_service.link(work, [op])
        logger.info(
            "Cut sections %s from %s into %s",
            join_items(numbers),
            block_slot.labware_id,
            join_items(lw.barcode for lw in touched),
        )
        return OperationResult([op], self.labware_repo.reload(touched))
