import pytest

from provenance.models import Work
from provenance.problems import ProblemSink
from provenance.services.work import WorkService


# ===============================================================
# SINGLE WORK NUMBER
# ===============================================================

@pytest.mark.django_db
@pytest.mark.parametrize("work_number", [None, "", "  "])
def test_missing_work_number(work_number):
    problems = ProblemSink()
    assert WorkService().validate_usable_work(problems, work_number) is None
    assert problems.as_list() == ["Work number is not specified."]


@pytest.mark.django_db
def test_unknown_work_number():
    problems = ProblemSink()
    assert WorkService().validate_usable_work(problems, "SGP404") is None
    assert problems.as_list() == ["Work number not recognised: 'SGP404'."]


@pytest.mark.django_db
def test_paused_work_is_returned_with_problem(work_factory):
    paused = work_factory("SGP1", status=Work.Status.PAUSED)
    problems = ProblemSink()

    assert WorkService().validate_usable_work(problems, "sgp1") == paused
    assert problems.as_list() == ["SGP1 cannot be used because it is paused."]


@pytest.mark.django_db
def test_active_work_is_usable(work):
    problems = ProblemSink()
    assert WorkService().validate_usable_work(problems, "SGP1") == work
    assert not problems


# ===============================================================
# MANY WORK NUMBERS
# ===============================================================

@pytest.mark.django_db
def test_validate_usable_works_aggregates(work_factory):
    work_factory("SGP1")
    work_factory("SGP2", status=Work.Status.PAUSED)
    work_factory("SGP3", status=Work.Status.COMPLETED)
    problems = ProblemSink()

    works = WorkService().validate_usable_works(problems, ["SGP1", None, "SGP2", "SGP3", "SGP8", "sgp8", "SGP9"])

    assert set(works) == {"SGP1", "SGP2", "SGP3"}
    assert problems.as_list() == [
        "Work number is not specified.",
        "Work numbers not recognised: ['SGP8', 'SGP9'].",
        "Work numbers cannot be used because they are paused or completed: SGP2, SGP3.",
    ]


@pytest.mark.django_db
def test_validate_usable_works_with_nothing_given():
    problems = ProblemSink()
    assert WorkService().validate_usable_works(problems, [None]) == {}
    assert problems.as_list() == ["No work numbers given."]


# ===============================================================
# LINKING
# ===============================================================

@pytest.mark.django_db
def test_link_refuses_unusable_work(work_factory):
    paused = work_factory("SGP5", status=Work.Status.PAUSED)
    op = object()

    with pytest.raises(ValueError, match="SGP5 cannot be used because it is paused."):
        WorkService().link(paused, [op])


@pytest.mark.django_db
def test_link_with_no_operations_is_a_no_op(work_factory):
    paused = work_factory("SGP5", status=Work.Status.PAUSED)
    assert WorkService().link(paused, []) is paused
