# provenance/services/work.py

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from provenance.models import Operation, Work
from provenance.problems import ProblemSink, distinct, distinct_upper, join_items, repr_items
from provenance.repositories import WorkRepo

logger = logging.getLogger(__name__)


class WorkService:
    def __init__(self, *, work_repo: Optional[WorkRepo] = None):
        self.work_repo = work_repo or WorkRepo()

    # ===============================================================
    # Validation
    # ===============================================================
    def validate_usable_work(self, problems: ProblemSink, work_number: Optional[str]) -> Optional[Work]:
        if not work_number or not work_number.strip():
            problems.add("Work number is not specified.")
            return None
        work = self.work_repo.find_by_work_number(work_number)
        if work is None:
            problems.add(f"Work number not recognised: {work_number!r}.")
            return None
        if not work.is_usable:
            problems.add(f"{work.work_number} cannot be used because it is {work.status}.")
        return work

    def validate_usable_works(
        self,
        problems: ProblemSink,
        work_numbers: Sequence[Optional[str]],
    ) -> Dict[str, Work]:
        """Returns the works found, keyed by upper-case work number."""
        work_numbers = list(work_numbers or [])
        given = [wn for wn in work_numbers if wn and wn.strip()]
        if not given:
            problems.add("No work numbers given.")
            return {}
        if len(given) < len(work_numbers):
            problems.add("Work number is not specified.")

        works = {w.work_number.upper(): w for w in self.work_repo.find_all_by_work_number_in(given)}

        missing = distinct_upper(wn for wn in given if wn.strip().upper() not in works)
        if missing:
            label = "Work number" if len(missing) == 1 else "Work numbers"
            problems.add(f"{label} not recognised: {repr_items(missing)}.")

        unusable: List[Work] = []
        for wn in given:
            w = works.get(wn.strip().upper())
            if w is not None and not w.is_usable and w not in unusable:
                unusable.append(w)
        if unusable:
            states = " or ".join(distinct(w.status for w in unusable))
            if len(unusable) == 1:
                problems.add(f"Work number cannot be used because it is {states}: {unusable[0].work_number}.")
            else:
                numbers = join_items(w.work_number for w in unusable)
                problems.add(f"Work numbers cannot be used because they are {states}: {numbers}.")
        return works

    # ===============================================================
    # Linking
    # ===============================================================
    def link(self, work: Work, operations: Iterable[Operation]) -> Work:
        operations = list(operations)
        if not operations:
            return work
        if not work.is_usable:
            raise ValueError(f"{work.work_number} cannot be used because it is {work.status}.")
        work.operations.add(*operations)
        logger.info(
            "Linked %d operation(s) to work %s",
            len(operations),
            work.work_number,
        )
        return work

    def link_work_ops(self, work_ops: Iterable[Tuple[Optional[Work], Operation]]) -> List[Work]:
        """Link each operation to its work, one link call per distinct work."""
        grouped: Dict[int, Tuple[Work, List[Operation]]] = {}
        for work, op in work_ops:
            if work is None:
                continue
            grouped.setdefault(work.pk, (work, []))[1].append(op)
        return [self.link(work, ops) for work, ops in grouped.values()]
