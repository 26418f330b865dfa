# provenance/validation/helper.py

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from provenance.models import Comment, Labware, OperationType, OperationTypeFlag, Work
from provenance.problems import ProblemSink
from provenance.repositories import LabwareRepo, OperationTypeRepo
from provenance.validation.labware_validator import LabwareValidator


class ValidationHelper:
    """
    Common request checks sharing a single problem sink.

    Each check appends to `problems` and returns whatever it could load,
    so callers can carry on checking after a failure.
    """

    def __init__(
        self,
        problems: Optional[ProblemSink] = None,
        *,
        labware_repo: Optional[LabwareRepo] = None,
        op_type_repo: Optional[OperationTypeRepo] = None,
        work_service=None,
        comment_service=None,
    ):
        # Imported here: the services package depends on validation.
        from provenance.services.comments import CommentService
        from provenance.services.work import WorkService

        self.problems = problems if problems is not None else ProblemSink()
        self.labware_repo = labware_repo or LabwareRepo()
        self.op_type_repo = op_type_repo or OperationTypeRepo()
        self.work_service = work_service or WorkService()
        self.comment_service = comment_service or CommentService()

    # ------------------------------------------------------------
    # Operation type
    # ------------------------------------------------------------
    def check_op_type(
        self,
        name: Optional[str],
        expected_flags: Iterable[OperationTypeFlag] = (),
        expected_not_flags: Iterable[OperationTypeFlag] = (),
    ) -> Optional[OperationType]:
        if not name or not name.strip():
            self.problems.add("Operation type not specified.")
            return None
        op_type = self.op_type_repo.find_by_name(name)
        if op_type is None:
            self.problems.add(f"Unknown operation type: {name!r}")
            return None
        if any(not op_type.has(f) for f in expected_flags) or any(op_type.has(f) for f in expected_not_flags):
            self.problems.add(f"Operation type {op_type.name} cannot be used in this operation.")
        return op_type

    # ------------------------------------------------------------
    # Labware
    # ------------------------------------------------------------
    def check_labware(
        self,
        barcodes: Optional[Sequence[Optional[str]]],
        *,
        for_update: bool = False,
        **validator_flags,
    ) -> Dict[str, Labware]:
        """
        Load source labware and validate it. Returns labware keyed by
        upper-case barcode.
        """
        if not barcodes:
            self.problems.add("No barcodes specified.")
            return {}
        present = [bc for bc in barcodes if bc and bc.strip()]
        if len(present) < len(barcodes):
            self.problems.add("Barcode missing.")
            if not present:
                return {}

        val = LabwareValidator(**validator_flags)
        val.load(self.labware_repo, present, for_update=for_update)
        val.validate_sources()
        self.problems.extend(val.errors)
        return {lw.barcode.upper(): lw for lw in val.labware}

    # ------------------------------------------------------------
    # Work & comments
    # ------------------------------------------------------------
    def check_work(self, work_numbers: Sequence[Optional[str]]) -> Dict[str, Work]:
        return self.work_service.validate_usable_works(self.problems, work_numbers)

    def check_comment_ids(self, ids: Iterable[Optional[int]]) -> Dict[int, Comment]:
        comments: List[Comment] = self.comment_service.validate_comment_ids(self.problems, ids)
        return {c.pk: c for c in comments}
