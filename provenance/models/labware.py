# provenance/models/labware.py

from django.db import models
from django.db.models import Q

from provenance.addresses import Address


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# Reference data
# ============================================================
class BioState(models.Model):
    """Biological state of a sample (e.g. Tissue, RNA, cDNA)."""

    name = models.CharField(max_length=64, unique=True)

    def __str__(self):
        return self.name


class Tissue(TimeStampedModel):
    """Registered tissue. Samples and sections are derived from it."""

    external_name = models.CharField(max_length=255, unique=True)
    replicate = models.CharField(max_length=16, blank=True)

    def __str__(self):
        return self.external_name


class LabwareType(models.Model):
    """Fixed row/column layout for a kind of container."""

    name = models.CharField(max_length=64, unique=True)
    num_rows = models.PositiveSmallIntegerField(default=1)
    num_columns = models.PositiveSmallIntegerField(default=1)

    class Meta:
        constraints = [
            models.CheckConstraint(
                name="labware_type_rows_positive",
                condition=Q(num_rows__gte=1) & Q(num_columns__gte=1),
            ),
        ]

    def addresses(self):
        return [
            Address(row, column)
            for row in range(1, self.num_rows + 1)
            for column in range(1, self.num_columns + 1)
        ]

    def __str__(self):
        return self.name


# ============================================================
# Sample
# ============================================================
class Sample(TimeStampedModel):
    """
    Immutable fact: a piece of tissue in a given bio state, optionally a
    numbered section. Never modified once saved.
    """

    tissue = models.ForeignKey(Tissue, on_delete=models.PROTECT, related_name="samples")
    section = models.PositiveIntegerField(null=True, blank=True)
    bio_state = models.ForeignKey(BioState, on_delete=models.PROTECT, related_name="samples")

    class Meta:
        ordering = ["id"]

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError(f"Sample {self.pk} is immutable.")
        return super().save(*args, **kwargs)

    def __str__(self):
        if self.section is None:
            return f"Sample {self.pk} ({self.tissue_id}, {self.bio_state})"
        return f"Sample {self.pk} ({self.tissue_id} s{self.section}, {self.bio_state})"


# ============================================================
# Labware
# ============================================================
class LabwareQuerySet(models.QuerySet):
    def with_contents(self):
        return self.select_related("labware_type").prefetch_related(
            models.Prefetch(
                "slots",
                queryset=Slot.objects.order_by("row", "column").prefetch_related(
                    models.Prefetch(
                        "slot_samples",
                        queryset=SlotSample.objects.select_related("sample", "sample__bio_state"),
                    )
                ),
            )
        )


class LabwareManager(models.Manager.from_queryset(LabwareQuerySet)):
    def create_with_slots(self, *, labware_type: LabwareType, barcode: str) -> "Labware":
        """Create labware plus one empty slot per address of its type."""
        lw = self.create(labware_type=labware_type, barcode=barcode)
        Slot.objects.bulk_create(
            [
                Slot(labware=lw, row=ad.row, column=ad.column)
                for ad in labware_type.addresses()
            ]
        )
        return self.with_contents().get(pk=lw.pk)


class Labware(TimeStampedModel):
    """
    A physical container. Barcode and type are fixed for life; only the
    lifecycle flags and slot contents change.
    """

    barcode = models.CharField(max_length=32, unique=True)
    labware_type = models.ForeignKey(LabwareType, on_delete=models.PROTECT, related_name="labware")

    discarded = models.BooleanField(default=False)
    destroyed = models.BooleanField(default=False)
    released = models.BooleanField(default=False)
    used = models.BooleanField(default=False)

    objects = LabwareManager()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                name="labware_barcode_not_blank",
                condition=~Q(barcode=""),
            ),
        ]

    def save(self, *args, **kwargs):
        self.barcode = (self.barcode or "").strip().upper()
        return super().save(*args, **kwargs)

    # ------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------
    @property
    def slot_list(self) -> list["Slot"]:
        return list(self.slots.all())

    @property
    def first_slot(self) -> "Slot":
        return self.slot_list[0]

    def opt_slot(self, address: Address):
        for slot in self.slot_list:
            if slot.address == address:
                return slot
        return None

    def get_slot(self, address: Address) -> "Slot":
        slot = self.opt_slot(address)
        if slot is None:
            raise ValueError(
                f"Address {address} is not valid for labware type {self.labware_type.name}."
            )
        return slot

    # ------------------------------------------------------------
    # State
    # ------------------------------------------------------------
    @property
    def is_empty(self) -> bool:
        return all(not slot.samples for slot in self.slot_list)

    def __str__(self):
        return self.barcode


# ============================================================
# Slot
# ============================================================
class Slot(models.Model):
    """
    One position in a labware. Contents are an ordered list of samples in
    which the same sample may appear more than once.
    """

    labware = models.ForeignKey(Labware, on_delete=models.CASCADE, related_name="slots")
    row = models.PositiveSmallIntegerField()
    column = models.PositiveSmallIntegerField()

    block_sample = models.ForeignKey(
        Sample,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="block_slots",
    )
    block_highest_section = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        ordering = ["labware_id", "row", "column"]
        unique_together = [("labware", "row", "column")]

    @property
    def address(self) -> Address:
        return Address(self.row, self.column)

    @property
    def samples(self) -> list[Sample]:
        return [ss.sample for ss in self.slot_samples.all()]

    @property
    def is_block(self) -> bool:
        return self.block_sample_id is not None

    def __str__(self):
        return f"{self.labware_id}:{self.address}"


class SlotSample(models.Model):
    """Ordered, non-unique membership of a sample in a slot."""

    slot = models.ForeignKey(Slot, on_delete=models.CASCADE, related_name="slot_samples")
    sample = models.ForeignKey(Sample, on_delete=models.PROTECT, related_name="slot_entries")
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]
