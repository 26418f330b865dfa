# provenance/tests/conftest.py

from __future__ import annotations

import uuid
from typing import Dict, List, Optional

import pytest
from django.contrib.auth import get_user_model

from provenance.addresses import Address
from provenance.models import (
    BioState,
    Comment,
    DestructionReason,
    Labware,
    LabwareType,
    OperationType,
    OperationTypeFlag,
    Sample,
    Slot,
    SlotSample,
    Tissue,
    Work,
)


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def reload_labware(barcode: str) -> Labware:
    return Labware.objects.with_contents().get(barcode=barcode.upper())


# ===============================================================
# Users & reference data
# ===============================================================
@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username="tech1", password="pass12345")


@pytest.fixture
def bio_state(db):
    return BioState.objects.create(name="Tissue")


@pytest.fixture
def rna_state(db):
    return BioState.objects.create(name="RNA")


@pytest.fixture
def tissue(db):
    return Tissue.objects.create(external_name=_rand("TISSUE"), replicate="1")


@pytest.fixture
def plate_type(db):
    return LabwareType.objects.create(name="Plate 2x3", num_rows=2, num_columns=3)


@pytest.fixture
def tube_type(db):
    return LabwareType.objects.create(name="Tube", num_rows=1, num_columns=1)


@pytest.fixture
def op_type_factory(db):
    def make(name: str, *flags: OperationTypeFlag) -> OperationType:
        value = 0
        for flag in flags:
            value |= flag
        return OperationType.objects.create(name=name, flags=int(value))

    return make


@pytest.fixture
def work_factory(db):
    def make(work_number: Optional[str] = None, status: str = Work.Status.ACTIVE) -> Work:
        return Work.objects.create(work_number=work_number or _rand("SGP"), status=status)

    return make


@pytest.fixture
def work(work_factory):
    return work_factory("SGP1")


@pytest.fixture
def comment_factory(db):
    def make(text: Optional[str] = None, enabled: bool = True) -> Comment:
        return Comment.objects.create(text=text or _rand("comment"), category="general", enabled=enabled)

    return make


@pytest.fixture
def destruction_reason(db):
    return DestructionReason.objects.create(text="Contaminated")


# ===============================================================
# Samples & labware
# ===============================================================
@pytest.fixture
def sample_factory(tissue, bio_state):
    def make(*, section: Optional[int] = None, bio_state_obj: Optional[BioState] = None) -> Sample:
        return Sample.objects.create(tissue=tissue, bio_state=bio_state_obj or bio_state, section=section)

    return make


@pytest.fixture
def labware_factory(plate_type):
    """
    labware_factory("STAN-1", contents={"A1": [s1, s1], "A2": [s2]}, released=True)
    """

    def make(
        barcode: str,
        *,
        labware_type: Optional[LabwareType] = None,
        contents: Optional[Dict[str, List[Sample]]] = None,
        **flags,
    ) -> Labware:
        lw = Labware.objects.create_with_slots(labware_type=labware_type or plate_type, barcode=barcode)
        for addr, samples in (contents or {}).items():
            slot = lw.get_slot(Address.parse(addr))
            SlotSample.objects.bulk_create(
                [SlotSample(slot=slot, sample=s, position=i) for i, s in enumerate(samples)]
            )
        if flags:
            Labware.objects.filter(pk=lw.pk).update(**flags)
        return reload_labware(lw.barcode)

    return make


@pytest.fixture
def block_factory(labware_factory, tube_type, sample_factory):
    def make(barcode: str, *, highest: Optional[int] = 0, **flags) -> Labware:
        sample = sample_factory()
        lw = labware_factory(barcode, labware_type=tube_type, contents={"A1": [sample]}, **flags)
        Slot.objects.filter(pk=lw.first_slot.pk).update(block_sample=sample, block_highest_section=highest)
        return reload_labware(barcode)

    return make
