# bloodstock/intake.py
import logging

from django.utils import timezone

from .exceptions import AlreadyCompleted, NotFound
from .ledger import Ledger, ledger as default_ledger
from .models import Donation
from .states import DonationStatus, check_donation_transition

logger = logging.getLogger(__name__)


def get_donation(donation_id, for_update=False) -> Donation:
    qs = Donation.objects.select_related("donor__blood_type")
    if for_update:
        qs = qs.select_for_update(of=("self",))
    try:
        return qs.get(pk=donation_id)
    except Donation.DoesNotExist:
        raise NotFound(f"Donation {donation_id} not found.")


def complete_donation(donation_id, ledger: Ledger = None):
    """
    Mark an approved donation Completed and append its Collected event.
    Donor cooldown is checked at approval, not here. A second call raises
    AlreadyCompleted and appends nothing.
    """
    ledger = ledger or default_ledger
    blood_type = get_donation(donation_id).donor.blood_type

    with ledger.locked([blood_type]) as rows:
        donation = get_donation(donation_id, for_update=True)
        if donation.status == DonationStatus.COMPLETED:
            raise AlreadyCompleted(f"Donation {donation_id} is already completed.")
        check_donation_transition(donation.status, DonationStatus.COMPLETED)

        event = ledger.collect(rows[blood_type.name], donation.quantity_ml, donation=donation)
        donation.transition_to(DonationStatus.COMPLETED)
        donation.completed_at = timezone.now()
        donation.save(update_fields=["status", "completed_at"])

        donor = donation.donor
        donor.last_donation_date = donation.donation_date
        donor.is_available = False
        donor.save(update_fields=["last_donation_date", "is_available"])

    logger.info("Donation %s completed: %sml of %s collected", donation.pk, donation.quantity_ml, blood_type.name)
    return event
