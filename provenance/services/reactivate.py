# provenance/services/reactivate.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from provenance.models import Comment, Labware, OperationType, Work
from provenance.problems import ProblemSink, RequestValidationError, join_items
from provenance.repositories import LabwareRepo, OperationTypeRepo
from provenance.services.comments import CommentService
from provenance.services.operations import OperationResult, OperationService, operation_type_name
from provenance.services.transactions import transact
from provenance.services.work import WorkService
from provenance.validation import LabwareValidator

logger = logging.getLogger(__name__)


@dataclass
class ReactivateLabware:
    barcode: Optional[str]
    work_number: Optional[str]
    comment_id: Optional[int]


class ReactivateService:
    """Bring discarded, destroyed or used labware back into circulation."""

    def __init__(
        self,
        *,
        labware_repo: Optional[LabwareRepo] = None,
        op_type_repo: Optional[OperationTypeRepo] = None,
        op_service: Optional[OperationService] = None,
        work_service: Optional[WorkService] = None,
        comment_service: Optional[CommentService] = None,
    ):
        self.labware_repo = labware_repo or LabwareRepo()
        self.op_type_repo = op_type_repo or OperationTypeRepo()
        self.op_service = op_service or OperationService()
        self.work_service = work_service or WorkService()
        self.comment_service = comment_service or CommentService()

    def perform(self, user, items: Optional[Sequence[ReactivateLabware]]) -> OperationResult:
        return transact("Reactivate", self._perform, user, items)

    def _perform(self, user, items) -> OperationResult:
        problems = ProblemSink()
        if user is None:
            problems.add("No user supplied.")
        if not items:
            problems.add("No labware specified.")
            raise RequestValidationError(problems)

        labware = self.load_labware(problems, items)
        works = self.work_service.validate_usable_works(problems, [it.work_number for it in items])
        comments = {
            c.pk: c
            for c in self.comment_service.validate_comment_ids(problems, [it.comment_id for it in items])
        }
        op_type = self.load_op_type(problems)

        if problems:
            logger.info("Reactivate rejected with %d problem(s)", len(problems))
            raise RequestValidationError(problems)

        return self.record(user, op_type, items, labware, works, comments)

    # ===============================================================
    # Loading
    # ===============================================================
    def load_labware(self, problems: ProblemSink, items) -> Dict[str, Labware]:
        val = LabwareValidator()
        val.load(self.labware_repo, [it.barcode for it in items], for_update=True)
        val.validate_unique()
        val.validate_non_empty()
        problems.extend(val.errors)
        unsuitable = [lw.barcode for lw in val.labware if not (lw.destroyed or lw.discarded or lw.used)]
        if unsuitable:
            problems.add(f"Labware is not discarded, destroyed or used: {join_items(unsuitable)}.")
        return {lw.barcode.upper(): lw for lw in val.labware}

    def load_op_type(self, problems: ProblemSink) -> Optional[OperationType]:
        name = operation_type_name("reactivate")
        op_type = self.op_type_repo.find_by_name(name)
        if op_type is None:
            problems.add(f'Operation type "{name}" not found.')
        return op_type

    # ===============================================================
    # Recording
    # ===============================================================
    def record(
        self,
        user,
        op_type: OperationType,
        items,
        labware: Dict[str, Labware],
        works: Dict[str, Work],
        comments: Dict[int, Comment],
    ) -> OperationResult:
        for lw in labware.values():
            lw.discarded = False
            lw.destroyed = False
            lw.used = False
        self.labware_repo.save_all(labware.values())

        ops = []
        work_ops = []
        affected: List[Labware] = []
        for item in items:
            lw = labware[item.barcode.strip().upper()]
            op = self.op_service.create_operation_in_place(op_type, user, lw)
            self.comment_service.record_operation_comments(op, comments.get(item.comment_id))
            ops.append(op)
            work_ops.append((works.get(item.work_number.strip().upper()), op))
            affected.append(lw)

        self.work_service.link_work_ops(work_ops)
        return OperationResult(ops, self.labware_repo.reload(affected))
