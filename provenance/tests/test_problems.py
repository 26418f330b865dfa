import pytest
from django.core.exceptions import ValidationError

from provenance.problems import (
    DEFAULT_SUMMARY,
    ProblemSink,
    RequestValidationError,
    distinct_upper,
    repr_items,
)


# ===============================================================
# PROBLEM SINK
# ===============================================================

def test_sink_keeps_order_and_duplicates():
    sink = ProblemSink()
    sink.add("B problem.")
    sink.add("A problem.")
    sink.extend(["B problem.", "C problem."])

    assert sink.as_list() == ["B problem.", "A problem.", "B problem.", "C problem."]
    assert len(sink) == 4
    assert "C problem." in sink
    assert list(sink) == sink.as_list()


def test_empty_sink_is_falsey_and_does_not_raise():
    sink = ProblemSink()
    assert not sink
    sink.raise_if_any()


def test_raise_if_any_carries_full_list():
    sink = ProblemSink(["No user supplied.", "No request supplied."])

    with pytest.raises(RequestValidationError) as excinfo:
        sink.raise_if_any()

    err = excinfo.value
    assert isinstance(err, ValidationError)
    assert err.problems == ["No user supplied.", "No request supplied."]
    assert err.summary == DEFAULT_SUMMARY
    assert err.messages == ["No user supplied.", "No request supplied."]


def test_error_problems_are_a_snapshot():
    sink = ProblemSink(["One."])
    err = RequestValidationError(sink)
    sink.add("Two.")
    assert err.problems == ["One."]


def test_error_str_includes_summary_and_problems():
    err = RequestValidationError(["Labware is empty: STAN-1."], summary="Bad request.")
    assert str(err) == "Bad request. Labware is empty: STAN-1."


# ===============================================================
# HELPERS
# ===============================================================

def test_repr_items_formats_like_a_list():
    assert repr_items(["X", None]) == "['X', None]"
    assert repr_items([5]) == "[5]"


def test_distinct_upper_keeps_first_spelling():
    assert distinct_upper(["sgp1", "SGP1", None, "SGP2", None]) == ["sgp1", None, "SGP2"]
