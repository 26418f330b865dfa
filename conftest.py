import pytest


@pytest.fixture(autouse=True)
def _stock_provenance_settings(settings):
    # Environment overrides must not leak into tests
    settings.PROVENANCE_AUDIT_OPERATIONS = True
    settings.PROVENANCE_OPERATION_TYPES = {
        "clean_out": "Clean out",
        "reactivate": "Reactivate",
        "unrelease": "Unrelease",
        "section": "Section",
    }
