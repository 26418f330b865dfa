# provenance/validation/labware_validator.py
"""
Reusable precondition checks for a set of labware.

The validator never raises while checking. Each check appends problems;
`throw_error` turns whatever was found into a single exception.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence

from provenance.problems import ProblemSink, distinct, join_items, pluralise, repr_items


class LabwareValidator:
    def __init__(
        self,
        labware: Optional[Iterable] = None,
        *,
        problems: Optional[ProblemSink] = None,
        unique_required: bool = True,
        single_sample: bool = False,
        used_allowed: bool = False,
        one_filled_slot_required: bool = False,
    ):
        self.labware: List = list(labware or [])
        self.problems = problems if problems is not None else ProblemSink()
        self.unique_required = unique_required
        self.single_sample = single_sample
        self.used_allowed = used_allowed
        self.one_filled_slot_required = one_filled_slot_required
        self.given_barcodes: Optional[List[Optional[str]]] = None

    # ------------------------------------------------------------
    # Problems
    # ------------------------------------------------------------
    def add_problem(self, problem: str) -> None:
        # Each check reports a problem at most once per validator.
        if problem not in self.problems:
            self.problems.add(problem)

    @property
    def errors(self) -> List[str]:
        return self.problems.as_list()

    def combined_message(self) -> str:
        return " ".join(self.problems)

    def throw_error(self, exception_factory: Callable[[str], Exception]) -> None:
        if self.problems:
            raise exception_factory(self.combined_message())

    # ------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------
    def load(self, repo, barcodes: Sequence[Optional[str]], *, for_update: bool = False) -> List:
        """
        Look up labware by barcode (case-insensitive) and keep it for
        validation. Unmatched barcodes are reported together.
        """
        barcodes = list(barcodes)
        self.given_barcodes = barcodes
        found = repo.find_all_by_barcode_in(barcodes, for_update=for_update)
        by_barcode = {lw.barcode.upper(): lw for lw in found}

        missing = distinct(
            bc for bc in barcodes
            if not isinstance(bc, str) or bc.strip().upper() not in by_barcode
        )
        if missing:
            self.add_problem(
                f"Invalid labware {pluralise(len(missing), 'barcode')}: {repr_items(missing)}."
            )

        ordered = []
        seen = set()
        for bc in barcodes:
            lw = by_barcode.get(bc.strip().upper()) if isinstance(bc, str) else None
            if lw is not None and lw.pk not in seen:
                seen.add(lw.pk)
                ordered.append(lw)
        self.labware = ordered
        return ordered

    # ------------------------------------------------------------
    # Composite checks
    # ------------------------------------------------------------
    def validate_sources(self) -> None:
        if self.unique_required:
            self.validate_unique()
        self.validate_non_empty()
        if self.single_sample:
            self.validate_single_sample()
        elif self.one_filled_slot_required:
            self.validate_one_filled_slot()
        self.validate_states()

    def validate_active_destinations(self) -> None:
        if self.unique_required:
            self.validate_unique()
        self.validate_states()

    # ------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------
    def validate_unique(self) -> None:
        if self.given_barcodes is not None:
            self._validate_unique_barcodes()
            return
        seen = set()
        dupes = []
        for lw in self.labware:
            if lw.pk in seen:
                dupes.append(lw.barcode)
            seen.add(lw.pk)
        dupes = distinct(dupes)
        if dupes:
            self.add_problem(f"Labware is repeated: {join_items(dupes)}.")

    def _validate_unique_barcodes(self) -> None:
        counts = {lw.barcode.upper(): 0 for lw in self.labware}
        for bc in self.given_barcodes:
            if not isinstance(bc, str):
                continue
            key = bc.strip().upper()
            if key in counts:
                counts[key] += 1
        dupes = [bc for bc, n in counts.items() if n > 1]
        if dupes:
            self.add_problem(f"Labware is repeated: {join_items(dupes)}.")

    def validate_non_empty(self) -> None:
        self.validate_state(lambda lw: lw.is_empty, "empty")

    def validate_states(self) -> None:
        if not self.labware:
            return
        self.validate_state(lambda lw: lw.discarded, "discarded")
        self.validate_state(lambda lw: lw.released, "released")
        self.validate_state(lambda lw: lw.destroyed, "destroyed")
        if not self.used_allowed:
            self.validate_state(lambda lw: lw.used, "used")

    def validate_state(self, predicate: Callable, label: str) -> None:
        if not self.labware:
            return
        bad = distinct(lw.barcode for lw in self.labware if predicate(lw))
        if bad:
            self.add_problem(f"Labware is {label}: {join_items(bad)}.")

    def validate_single_sample(self) -> None:
        if not self.labware:
            return
        multi_sample = []
        multi_slot = []
        for lw in self._distinct_labware():
            filled = [slot for slot in lw.slot_list if slot.samples]
            sample_ids = {s.pk for slot in filled for s in slot.samples}
            if len(sample_ids) > 1:
                multi_sample.append(lw.barcode)
            elif len(filled) > 1:
                multi_slot.append(lw.barcode)
        if multi_sample:
            self.add_problem(f"Labware contains multiple samples: {join_items(multi_sample)}.")
        if multi_slot:
            self.add_problem(f"Labware contains samples in multiple slots: {join_items(multi_slot)}.")

    def validate_one_filled_slot(self) -> None:
        if not self.labware:
            return
        multi_slot = [
            lw.barcode
            for lw in self._distinct_labware()
            if sum(1 for slot in lw.slot_list if slot.samples) > 1
        ]
        if multi_slot:
            self.add_problem(f"Labware contains samples in multiple slots: {join_items(multi_slot)}.")

    def validate_bio_state(self, bio_state) -> None:
        wrong = []
        for lw in self._distinct_labware():
            for sample in (s for slot in lw.slot_list for s in slot.samples):
                if sample.bio_state_id != bio_state.pk:
                    wrong.append(f"({lw.barcode}, {sample.bio_state.name})")
                    break
        if wrong:
            self.add_problem(
                f"Labware contains samples not in bio state {bio_state.name}: {join_items(wrong)}."
            )

    def _distinct_labware(self) -> List:
        seen = set()
        out = []
        for lw in self.labware:
            if lw.pk not in seen:
                seen.add(lw.pk)
                out.append(lw)
        return out
