# provenance/management/commands/reset_block_section.py

import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from provenance.addresses import Address
from provenance.models import AuditLog
from provenance.repositories import LabwareRepo, SlotRepo

logger = logging.getLogger("provenance.admin")


class Command(BaseCommand):
    help = "Set the highest section number of a block, including lowering it"

    def add_arguments(self, parser):
        parser.add_argument("barcode")
        parser.add_argument("value", type=int)
        parser.add_argument("--address", help="Block slot address (e.g. A1). Defaults to every block slot.")

    def handle(self, *args, **options):
        barcode = (options["barcode"] or "").strip().upper()
        value = options["value"]
        if value < 0:
            raise CommandError("Highest section cannot be negative.")

        address = None
        if options.get("address"):
            try:
                address = Address.parse(options["address"])
            except ValueError as exc:
                raise CommandError(str(exc))

        with transaction.atomic():
            lw = LabwareRepo().find_by_barcode(barcode)
            if lw is None:
                raise CommandError(f"Unknown labware barcode: {barcode!r}")

            slots = [s for s in lw.slot_list if s.is_block]
            if address is not None:
                slots = [s for s in slots if s.address == address]
            if not slots:
                where = f" at {address}" if address else ""
                raise CommandError(f"Labware {lw.barcode} has no block slot{where}.")

            for slot in slots:
                locked = SlotRepo().lock(slot.pk)
                old = locked.block_highest_section
                locked.block_highest_section = value
                locked.save(update_fields=["block_highest_section"])
                AuditLog.objects.create(
                    action=f"RESET BLOCK SECTION {lw.barcode} {locked.address}",
                    details={"slot_id": locked.pk, "old": old, "new": value},
                )
                logger.warning(
                    "Block section counter for %s %s reset from %s to %s",
                    lw.barcode,
                    locked.address,
                    old,
                    value,
                )
                self.stdout.write(f"{lw.barcode} {locked.address}: {old} -> {value}")
