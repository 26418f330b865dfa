import pytest

from provenance.addresses import Address
from provenance.models import Operation, OperationTypeFlag, Sample, Slot
from provenance.problems import RequestValidationError
from provenance.services.sectioning import SectionDestination, SectionRequest, SectionService


@pytest.fixture
def section_type(op_type_factory):
    return op_type_factory("Section", OperationTypeFlag.SOURCE_IS_BLOCK)


@pytest.mark.django_db
def test_sections_are_numbered_from_block_counter(user, section_type, work, block_factory, labware_factory):
    block = block_factory("STAN-B1", highest=4)
    labware_factory("SLIDE-1")
    block_sample = block.first_slot.samples[0]

    result = SectionService().perform(
        user,
        SectionRequest(
            source_barcode="STAN-B1",
            work_number="SGP1",
            sections=[
                SectionDestination("SLIDE-1", Address(1, 1)),
                SectionDestination("slide-1", Address(1, 1)),
                SectionDestination("SLIDE-1", Address(2, 3)),
            ],
            planned_section=2,
        ),
    )

    (op,) = result.operations
    assert [a.sample.section for a in op.action_list] == [5, 6, 7]
    assert all(a.source_id == block.first_slot.pk for a in op.action_list)
    assert all(a.source_sample_id == block_sample.pk for a in op.action_list)

    new_samples = Sample.objects.filter(section__in=[5, 6, 7])
    assert all(s.tissue_id == block_sample.tissue_id and s.bio_state_id == block_sample.bio_state_id for s in new_samples)

    (slide,) = result.labware
    assert [s.section for s in slide.get_slot(Address(1, 1)).samples] == [5, 6]
    assert [s.section for s in slide.get_slot(Address(2, 3)).samples] == [7]
    assert Slot.objects.get(pk=block.first_slot.pk).block_highest_section == 7
    assert list(work.operations.all()) == [op]


@pytest.mark.django_db
def test_section_problems(user, section_type, work, labware_factory, sample_factory):
    labware_factory("STAN-1", contents={"A1": [sample_factory()]})
    labware_factory("SLIDE-1", destroyed=True)

    with pytest.raises(RequestValidationError) as excinfo:
        SectionService().perform(
            user,
            SectionRequest(
                source_barcode="STAN-1",
                work_number="SGP1",
                sections=[
                    SectionDestination("SLIDE-1", Address(3, 1)),
                    SectionDestination(None, Address(1, 1)),
                    SectionDestination("SLIDE-1", None),
                ],
                planned_section=-1,
            ),
        )

    assert excinfo.value.problems == [
        "Labware STAN-1 is not a block.",
        "Planned section number cannot be negative.",
        "Destination barcode missing.",
        "Null supplied as slot address.",
        "Labware is destroyed: SLIDE-1.",
        "No slot found in labware SLIDE-1 at address: C1.",
    ]
    assert Operation.objects.count() == 0


@pytest.mark.django_db
def test_no_sections(user, section_type, work, block_factory):
    block_factory("STAN-B1", highest=0)

    with pytest.raises(RequestValidationError) as excinfo:
        SectionService().perform(user, SectionRequest(source_barcode="STAN-B1", work_number="SGP1"))
    assert excinfo.value.problems == ["No sections specified."]


@pytest.mark.django_db
def test_failed_request_does_not_advance_counter(user, section_type, work, block_factory):
    block = block_factory("STAN-B1", highest=4)

    with pytest.raises(RequestValidationError):
        SectionService().perform(
            user,
            SectionRequest(
                source_barcode="STAN-B1",
                work_number="SGP1",
                sections=[SectionDestination("NOPE", Address(1, 1))],
            ),
        )
    assert Slot.objects.get(pk=block.first_slot.pk).block_highest_section == 4
