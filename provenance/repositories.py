# provenance/repositories.py
"""
Loaders and persistence for the provenance graph.

Services load and persist the labware graph through these small
repositories, which tests may replace with in-memory fakes.

`find_*` methods return None (or omit entries) when nothing matches, so
absence is distinguishable from a database error.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from django.db import models as dj_models

from provenance.models import (
    Action,
    Comment,
    Labware,
    Operation,
    OperationType,
    Sample,
    Slot,
    SlotSample,
    Work,
)


def _upper_all(values: Iterable[Optional[str]]) -> list[str]:
    return list({v.strip().upper() for v in values if v and v.strip()})


# ===============================================================
# Labware
# ===============================================================
class LabwareRepo:
    def find_by_barcode(self, barcode: str) -> Optional[Labware]:
        if not barcode or not barcode.strip():
            return None
        return Labware.objects.with_contents().filter(barcode=barcode.strip().upper()).first()

    def find_all_by_barcode_in(self, barcodes: Iterable[Optional[str]], *, for_update: bool = False) -> List[Labware]:
        """
        Load labware matching any of the given barcodes (case-insensitive).

        With for_update=True the labware rows stay locked until the
        surrounding transaction ends.
        """
        keys = _upper_all(barcodes)
        if not keys:
            return []
        qs = Labware.objects.with_contents().filter(barcode__in=keys)
        if for_update:
            qs = qs.select_for_update(of=("self",))
        return list(qs)

    def reload(self, labware: Sequence[Labware]) -> List[Labware]:
        ids = [lw.pk for lw in labware]
        by_id = {lw.pk: lw for lw in Labware.objects.with_contents().filter(pk__in=ids)}
        return [by_id[pk] for pk in ids]

    def save(self, labware: Labware) -> Labware:
        labware.save()
        return labware

    def save_all(self, labware: Iterable[Labware]) -> List[Labware]:
        saved = []
        for lw in labware:
            lw.save(update_fields=["discarded", "destroyed", "released", "used", "updated_at"])
            saved.append(lw)
        return saved


# ===============================================================
# Slots & samples
# ===============================================================
class SlotRepo:
    def lock(self, slot_id: int) -> Slot:
        return Slot.objects.select_for_update().get(pk=slot_id)

    def save(self, slot: Slot) -> Slot:
        slot.save()
        return slot

    def save_all(self, slots: Iterable[Slot]) -> List[Slot]:
        return [self.save(slot) for slot in slots]

    def set_samples(self, slot: Slot, samples: Sequence[Sample]) -> Slot:
        """Replace the contents of a slot with the given ordered samples."""
        SlotSample.objects.filter(slot=slot).delete()
        SlotSample.objects.bulk_create(
            [SlotSample(slot=slot, sample=sample, position=i) for i, sample in enumerate(samples)]
        )
        return slot

    def add_sample(self, slot: Slot, sample: Sample) -> Slot:
        last = SlotSample.objects.filter(slot=slot).aggregate(m=dj_models.Max("position"))["m"]
        SlotSample.objects.create(slot=slot, sample=sample, position=0 if last is None else last + 1)
        return slot


class SampleRepo:
    def save(self, sample: Sample) -> Sample:
        sample.save()
        return sample


# ===============================================================
# Reference data
# ===============================================================
class OperationTypeRepo:
    def find_by_name(self, name: str) -> Optional[OperationType]:
        if not name:
            return None
        return OperationType.objects.filter(name__iexact=name.strip()).first()


class WorkRepo:
    def find_by_work_number(self, work_number: str) -> Optional[Work]:
        if not work_number:
            return None
        return Work.objects.filter(work_number=work_number.strip().upper()).first()

    def find_all_by_work_number_in(self, work_numbers: Iterable[Optional[str]]) -> List[Work]:
        keys = _upper_all(work_numbers)
        if not keys:
            return []
        return list(Work.objects.filter(work_number__in=keys))


class CommentRepo:
    def find_all_by_id_in(self, ids: Iterable[int]) -> List[Comment]:
        ids = [i for i in ids if i is not None]
        if not ids:
            return []
        return list(Comment.objects.filter(pk__in=ids))


# ===============================================================
# Operations
# ===============================================================
class OperationRepo:
    def save(self, operation: Operation) -> Operation:
        operation.save()
        return operation

    def reload(self, operation_id: int) -> Operation:
        return (
            Operation.objects.select_related("operation_type", "user")
            .prefetch_related(
                dj_models.Prefetch(
                    "actions",
                    queryset=Action.objects.select_related(
                        "source", "destination", "source_sample", "sample"
                    ).order_by("id"),
                )
            )
            .get(pk=operation_id)
        )


class ActionRepo:
    def save_all(self, actions: Sequence[Action]) -> List[Action]:
        return Action.objects.bulk_create(list(actions))
