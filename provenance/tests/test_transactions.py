from unittest import mock

import pytest

from provenance.models import BioState
from provenance.problems import RequestValidationError
from provenance.services.transactions import transact


@pytest.mark.django_db
def test_transact_returns_result():
    result = transact("create", lambda name: BioState.objects.create(name=name), "cDNA")

    assert result.pk is not None
    assert BioState.objects.filter(name="cDNA").exists()


@pytest.mark.django_db
def test_transact_rolls_back_and_reraises():
    def work():
        BioState.objects.create(name="Library")
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        transact("failing", work)

    assert not BioState.objects.filter(name="Library").exists()


@pytest.mark.django_db
def test_rejected_request_rolls_back_and_logs_at_info():
    def work():
        BioState.objects.create(name="Fixed")
        raise RequestValidationError(["Labware is empty: STAN-1.", "No user supplied."])

    with mock.patch("provenance.services.transactions.logger") as log:
        with pytest.raises(RequestValidationError) as exc_info:
            transact("Clean out", work)

    assert exc_info.value.problems == ["Labware is empty: STAN-1.", "No user supplied."]
    assert not BioState.objects.filter(name="Fixed").exists()
    log.info.assert_called_once_with("Transaction rolled back: %s (%d problem(s))", "Clean out", 2)
    log.warning.assert_not_called()


@pytest.mark.django_db
def test_unexpected_error_logs_at_warning():
    def work():
        raise RuntimeError("boom")

    with mock.patch("provenance.services.transactions.logger") as log:
        with pytest.raises(RuntimeError):
            transact("failing", work)

    log.warning.assert_called_once()
    log.info.assert_not_called()
