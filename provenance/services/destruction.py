# provenance/services/destruction.py

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from provenance.models import Destruction, DestructionReason, Labware
from provenance.repositories import LabwareRepo
from provenance.services.transactions import transact
from provenance.validation import LabwareValidator

logger = logging.getLogger(__name__)


class DestructionService:
    """
    Flags labware as destroyed and records why.

    Bad arguments raise ValueError; an unknown reason id raises
    DestructionReason.DoesNotExist. Nothing is reported as request problems.
    """

    def __init__(self, *, labware_repo: Optional[LabwareRepo] = None):
        self.labware_repo = labware_repo or LabwareRepo()

    def destroy(self, user, barcodes: Sequence[str], reason_id: Optional[int]) -> List[Destruction]:
        return transact("Destruction transaction", self._destroy, user, barcodes, reason_id)

    def _destroy(self, user, barcodes, reason_id) -> List[Destruction]:
        if not barcodes:
            raise ValueError("No barcodes supplied.")
        if reason_id is None:
            raise ValueError("No reason id supplied.")
        reason = DestructionReason.objects.get(pk=reason_id)
        if not reason.enabled:
            raise ValueError("Specified destruction reason is not enabled.")

        labware = self.load_and_validate_labware(barcodes)
        for lw in labware:
            lw.destroyed = True
        self.labware_repo.save_all(labware)
        return self.record_destructions(user, reason, labware)

    def load_and_validate_labware(self, barcodes: Sequence[str]) -> List[Labware]:
        val = LabwareValidator(unique_required=True)
        labware = val.load(self.labware_repo, barcodes, for_update=True)
        val.validate_sources()
        val.throw_error(ValueError)
        return labware

    def record_destructions(self, user, reason: DestructionReason, labware: List[Labware]) -> List[Destruction]:
        destructions = [Destruction.objects.create(labware=lw, user=user, reason=reason) for lw in labware]
        logger.info(
            "Destroyed %d labware (%s): %s",
            len(labware),
            reason.text,
            ", ".join(lw.barcode for lw in labware),
        )
        return destructions
