from provenance.validation.helper import ValidationHelper
from provenance.validation.labware_validator import LabwareValidator

__all__ = ["LabwareValidator", "ValidationHelper"]
