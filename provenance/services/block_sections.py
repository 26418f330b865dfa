# provenance/services/block_sections.py

from __future__ import annotations

import logging
from typing import List, Optional

from django.db import transaction

from provenance.models import Slot
from provenance.repositories import SlotRepo

logger = logging.getLogger(__name__)


class BlockSectionCounter:
    """
    Allocates section numbers from a block slot.

    The stored highest section only ever grows here. Lowering it is an
    administrative action (see the reset_block_section command).
    """

    def __init__(self, *, slot_repo: Optional[SlotRepo] = None):
        self.slot_repo = slot_repo or SlotRepo()

    @staticmethod
    def next_section(highest: Optional[int], planned: Optional[int] = None) -> int:
        return max(highest or 0, planned or 0) + 1

    def allocate(self, slot: Slot, count: int = 1, planned: Optional[int] = None) -> List[int]:
        if count < 1:
            raise ValueError(f"Cannot allocate {count} sections.")
        if planned is not None and planned < 0:
            raise ValueError("Planned section number cannot be negative.")

        with transaction.atomic():
            locked = self.slot_repo.lock(slot.pk)
            if not locked.is_block:
                raise ValueError(f"Slot {locked.address} in labware {locked.labware_id} is not a block.")
            first = self.next_section(locked.block_highest_section, planned)
            numbers = list(range(first, first + count))
            locked.block_highest_section = numbers[-1]
            locked.save(update_fields=["block_highest_section"])

        slot.block_highest_section = numbers[-1]
        logger.debug("Allocated sections %s from slot %s", numbers, slot.pk)
        return numbers
