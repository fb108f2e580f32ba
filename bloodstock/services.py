# bloodstock/services.py
"""
Administrative workflow around the stock engine.

Every public method returns an OperationResult instead of raising: errors
from the engine are reported to the operator, recorded in the audit log,
and leave stored state unchanged.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from django.utils import timezone

from .allocation import AllocationEngine, get_request
from .compat import compatible_types, normalize_type
from .eligibility import days_until_eligible, is_eligible
from .exceptions import (
    BloodStockError, ConsistencyViolation, IneligibleDonor, InsufficientStock,
    InvalidQuantity, NotFound,
)
from .intake import complete_donation, get_donation
from .ledger import Ledger, ledger as default_ledger
from .models import AuditEvent, BloodRequest, Donation, Donor
from .states import DonationStatus, RequestStatus

logger = logging.getLogger(__name__)
consistency_logger = logging.getLogger("bloodstock.consistency")

MAX_DONATION_ML = 1000
MAX_REQUEST_ML = 10000


@dataclass
class OperationResult:
    success: bool
    message: str = ""
    data: dict = field(default_factory=dict)
    error: Optional[BloodStockError] = None

    @property
    def code(self) -> str:
        return self.error.code if self.error else "ok"


def log_event(actor, action, **details):
    AuditEvent.objects.create(actor=actor or "", action=action, details=details)


def _check_quantity(quantity_ml, upper):
    if isinstance(quantity_ml, bool) or not isinstance(quantity_ml, int) or not 1 <= quantity_ml <= upper:
        raise InvalidQuantity(quantity_ml)


class AdminWorkflow:
    def __init__(self, actor: str = "", ledger: Ledger = None, engine: AllocationEngine = None):
        self.actor = actor
        self.ledger = ledger or default_ledger
        self.engine = engine or AllocationEngine(self.ledger)

    # ------------------------ boundary ------------------------
    def _run(self, action, func, **details) -> OperationResult:
        try:
            result = func()
        except ConsistencyViolation as exc:
            consistency_logger.critical("%s failed with a consistency violation: %s", action, exc.message,
                                        extra={"details": details})
            log_event(self.actor, f"{action}_failed", reason=exc.code, alarm=True,
                      blood_type=exc.blood_type, available=exc.available, **details)
            return OperationResult(False, exc.message, error=exc)
        except BloodStockError as exc:
            logger.warning("%s failed: %s", action, exc.message)
            payload = exc.as_dict() if isinstance(exc, InsufficientStock) else {}
            log_event(self.actor, f"{action}_failed", reason=exc.code, **payload, **details)
            return OperationResult(False, exc.message, data=payload, error=exc)

        message, data = result
        log_event(self.actor, action, **details, **data)
        return OperationResult(True, message, data=data)

    # ------------------------ intake ------------------------
    def record_donation(self, donor_id, quantity_ml, donation_date=None, notes="") -> OperationResult:
        def run():
            _check_quantity(quantity_ml, MAX_DONATION_ML)
            try:
                donor = Donor.objects.get(pk=donor_id)
            except Donor.DoesNotExist:
                raise NotFound(f"Donor {donor_id} not found.")
            donation = Donation.objects.create(
                donor=donor,
                quantity_ml=quantity_ml,
                donation_date=donation_date or timezone.now(),
                notes=notes,
            )
            return "Donation recorded and pending approval.", {"donation_id": donation.pk}

        return self._run("donation_create", run, donor_id=donor_id, quantity_ml=quantity_ml)

    def submit_request(self, hospital_name, blood_type, quantity_ml, hospital_city="",
                       is_emergency=False, notes="") -> OperationResult:
        def run():
            _check_quantity(quantity_ml, MAX_REQUEST_ML)
            bt = self.ledger.blood_type(blood_type)
            req = BloodRequest.objects.create(
                hospital_name=hospital_name,
                hospital_city=hospital_city,
                blood_type=bt,
                quantity_ml=quantity_ml,
                is_emergency=is_emergency,
                notes=notes,
            )
            return "Request submitted and pending approval.", {"request_id": req.pk}

        return self._run("request_create", run, blood_type=str(blood_type), quantity_ml=quantity_ml,
                         hospital=hospital_name)

    # ------------------------ donations ------------------------
    def approve_donation(self, donation_id) -> OperationResult:
        def run():
            donation = get_donation(donation_id)
            with self.ledger.locked([donation.donor.blood_type]):
                donation = get_donation(donation_id, for_update=True)
                donor = donation.donor
                if not is_eligible(donor):
                    raise IneligibleDonor(days_until_eligible(donor))
                donation.transition_to(DonationStatus.APPROVED)
                donation.approved_at = timezone.now()
                donation.save(update_fields=["status", "approved_at"])
            return "Donation approved successfully.", {}

        return self._run("donation_approved", run, donation_id=donation_id)

    def reject_donation(self, donation_id, reason="") -> OperationResult:
        def run():
            donation = get_donation(donation_id)
            with self.ledger.locked([donation.donor.blood_type]):
                donation = get_donation(donation_id, for_update=True)
                donation.transition_to(DonationStatus.REJECTED)
                donation.notes = reason or "Rejected by admin"
                donation.save(update_fields=["status", "notes"])
            return "Donation rejected.", {}

        return self._run("donation_rejected", run, donation_id=donation_id)

    def complete_donation(self, donation_id) -> OperationResult:
        def run():
            event = complete_donation(donation_id, ledger=self.ledger)
            return "Donation marked as completed.", {
                "blood_type": event.blood_type.name,
                "quantity_ml": event.quantity_ml,
                "ledger_event_id": event.pk,
            }

        return self._run("donation_completed", run, donation_id=donation_id)

    # ------------------------ requests ------------------------
    def approve_request(self, request_id) -> OperationResult:
        def run():
            req = get_request(request_id)
            with self.ledger.locked([req.blood_type]):
                req = get_request(request_id, for_update=True)
                req.transition_to(RequestStatus.APPROVED)
                req.approved_at = timezone.now()
                req.save(update_fields=["status", "approved_at"])
            return "Blood request approved successfully.", {}

        return self._run("request_approved", run, request_id=request_id)

    def reject_request(self, request_id, reason="") -> OperationResult:
        def run():
            req = get_request(request_id)
            with self.ledger.locked([req.blood_type]):
                req = get_request(request_id, for_update=True)
                req.transition_to(RequestStatus.REJECTED)
                req.admin_notes = reason or "Rejected by admin"
                req.save(update_fields=["status", "admin_notes"])
            return "Blood request rejected.", {}

        return self._run("request_rejected", run, request_id=request_id)

    def fulfill_request(self, request_id) -> OperationResult:
        def run():
            allocation = self.engine.fulfill(request_id)
            return allocation.message, {
                "requested_type": allocation.requested_type,
                "chosen_type": allocation.chosen_type,
                "quantity_ml": allocation.quantity_ml,
                "remaining_ml": allocation.remaining_ml,
            }

        return self._run("request_fulfilled", run, request_id=request_id)

    # ------------------------ stock queries ------------------------
    def get_availability(self, blood_type) -> int:
        return self.ledger.available_ml(blood_type)

    def get_availability_by_compatible_set(self, blood_type) -> int:
        return self.ledger.available_ml_for(compatible_types(normalize_type(blood_type)))

    def get_distribution(self) -> list:
        return self.ledger.distribution()

