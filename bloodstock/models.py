# bloodstock/models.py
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import Q, Sum
from django.utils import timezone

from .exceptions import InvalidState
from .states import (
    DonationStatus, RequestStatus,
    check_donation_transition, check_request_transition,
)

# -------------------- Constants --------------------
class BloodGroup(models.TextChoices):
    A_POS = "A+", "A+"
    A_NEG = "A-", "A-"
    B_POS = "B+", "B+"
    B_NEG = "B-", "B-"
    AB_POS = "AB+", "AB+"
    AB_NEG = "AB-", "AB-"
    O_POS = "O+", "O+"
    O_NEG = "O-", "O-"


BLOOD_TYPES = BloodGroup.choices

BLOOD_TYPE_DESCRIPTIONS = {
    "A+": "A Positive",
    "A-": "A Negative",
    "B+": "B Positive",
    "B-": "B Negative",
    "AB+": "AB Positive (Universal Receiver)",
    "AB-": "AB Negative",
    "O+": "O Positive",
    "O-": "O Negative (Universal Donor)",
}


# -------------------- Reference data --------------------
class BloodTypeManager(models.Manager):
    def seed(self):
        """Create the eight reference rows if missing. Safe to call repeatedly."""
        for code, _ in BLOOD_TYPES:
            self.get_or_create(name=code, defaults={"description": BLOOD_TYPE_DESCRIPTIONS[code]})
        return self.filter(name__in=BloodGroup.values)

    def by_codes(self, codes):
        return {bt.name: bt for bt in self.filter(name__in=list(codes))}


class BloodType(models.Model):
    name = models.CharField("Type", max_length=3, choices=BLOOD_TYPES, unique=True)
    description = models.CharField("Description", max_length=200, blank=True)

    objects = BloodTypeManager()

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name


# -------------------- Core domain --------------------
class Donor(models.Model):
    national_id = models.CharField("National ID", max_length=9, unique=True, db_index=True)
    full_name = models.CharField("Full name", max_length=120)
    date_of_birth = models.DateField("Date of birth", null=True, blank=True)
    blood_type = models.ForeignKey(BloodType, on_delete=models.PROTECT, related_name="donors")
    last_donation_date = models.DateTimeField("Last donation", null=True, blank=True)
    is_available = models.BooleanField("Available", default=True)

    class Meta:
        ordering = ["full_name"]

    def __str__(self):
        return f"{self.full_name} ({self.national_id})"


class Donation(models.Model):
    Status = DonationStatus

    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name="donations")
    quantity_ml = models.PositiveIntegerField("Quantity (ml)")
    status = models.CharField("Status", max_length=20, choices=Status.choices,
                              default=Status.PENDING, db_index=True)
    donation_date = models.DateTimeField("Donation time", default=timezone.now)
    notes = models.TextField("Notes", blank=True)
    approved_at = models.DateTimeField("Approved at", null=True, blank=True)
    completed_at = models.DateTimeField("Completed at", null=True, blank=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_ml__gte=1) & Q(quantity_ml__lte=1000),
                name="donation_quantity_range",
            ),
        ]

    def __str__(self):
        return f"{self.quantity_ml}ml {self.donation_date:%Y-%m-%d %H:%M} - {self.donor.full_name}"

    def transition_to(self, target):
        check_donation_transition(self.status, target)
        self.status = target


class BloodRequest(models.Model):
    Status = RequestStatus

    hospital_name = models.CharField("Hospital name", max_length=200)
    hospital_city = models.CharField("Hospital city", max_length=80, blank=True)
    blood_type = models.ForeignKey(BloodType, on_delete=models.PROTECT, related_name="requests")
    quantity_ml = models.PositiveIntegerField("Quantity (ml)")
    is_emergency = models.BooleanField("Emergency", default=False)
    status = models.CharField("Status", max_length=20, choices=Status.choices,
                              default=Status.PENDING, db_index=True)
    fulfilled_with = models.ForeignKey(
        BloodType, on_delete=models.PROTECT, null=True, blank=True, related_name="fulfilled_requests",
    )
    notes = models.TextField("Notes", blank=True)
    admin_notes = models.TextField("Admin notes", blank=True)
    approved_at = models.DateTimeField("Approved at", null=True, blank=True)
    fulfilled_at = models.DateTimeField("Fulfilled at", null=True, blank=True)
    created_at = models.DateTimeField("Created at", auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_ml__gte=1) & Q(quantity_ml__lte=10000),
                name="request_quantity_range",
            ),
        ]

    def __str__(self):
        flag = " (emergency)" if self.is_emergency else ""
        return f"Req {self.blood_type} x{self.quantity_ml}ml{flag} - {self.hospital_name}"

    def transition_to(self, target):
        check_request_transition(self.status, target)
        self.status = target


# -------------------- Ledger --------------------
class LedgerEventQuerySet(models.QuerySet):
    def collected(self):
        return self.filter(kind=LedgerEvent.Kind.COLLECTED)

    def issued(self):
        return self.filter(kind=LedgerEvent.Kind.ISSUED)

    def for_types(self, codes):
        return self.filter(blood_type__name__in=list(codes))

    def total_ml(self) -> int:
        return self.aggregate(total=Sum("quantity_ml"))["total"] or 0

    def update(self, **kwargs):
        raise InvalidState("Ledger events are immutable.")

    def delete(self):
        raise InvalidState("Ledger events are immutable.")


class LedgerEvent(models.Model):
    class Kind(models.TextChoices):
        COLLECTED = "COLLECTED", "Collected"
        ISSUED = "ISSUED", "Issued"

    blood_type = models.ForeignKey(BloodType, on_delete=models.PROTECT, related_name="ledger_events")
    kind = models.CharField("Kind", max_length=10, choices=Kind.choices, db_index=True)
    quantity_ml = models.PositiveIntegerField("Quantity (ml)")
    donation = models.OneToOneField(
        Donation, on_delete=models.PROTECT, null=True, blank=True, related_name="ledger_event",
    )
    blood_request = models.OneToOneField(
        BloodRequest, on_delete=models.PROTECT, null=True, blank=True, related_name="ledger_event",
    )
    created_at = models.DateTimeField("Created at", default=timezone.now, db_index=True)

    objects = LedgerEventQuerySet.as_manager()

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity_ml__gt=0), name="ledger_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.get_kind_display()} {self.blood_type} {self.quantity_ml}ml"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise InvalidState("Ledger events are immutable.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvalidState("Ledger events are immutable.")


# -------------------- Audit --------------------
class AuditJSONEncoder(DjangoJSONEncoder):
    """Audit details always serialise: values JSON cannot hold are stored as their repr()."""

    def default(self, o):
        try:
            return super().default(o)
        except TypeError:
            return repr(o)


class AuditEvent(models.Model):
    actor = models.CharField("Actor", max_length=150, blank=True)
    action = models.CharField("Action", max_length=50)
    details = models.JSONField("Details", default=dict, blank=True, encoder=AuditJSONEncoder)
    created_at = models.DateTimeField("Created at", auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        who = self.actor or "system"
        return f"{self.created_at:%Y-%m-%d %H:%M} {who} -> {self.action}"
