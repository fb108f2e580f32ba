from datetime import timedelta

from django.conf import settings
from django.utils import timezone


def cooldown_days():
    return int(getattr(settings, "BLOODSTOCK_DONATION_COOLDOWN_DAYS", 90))


def next_eligible_datetime(donor):
    if not donor.last_donation_date:
        return None
    return donor.last_donation_date + timedelta(days=cooldown_days())


def is_eligible(donor, now=None):
    nxt = next_eligible_datetime(donor)
    return nxt is None or (now or timezone.now()) >= nxt


def days_until_eligible(donor, now=None):
    if not donor.last_donation_date:
        return 0
    elapsed = ((now or timezone.now()) - donor.last_donation_date).days
    return max(0, cooldown_days() - elapsed)
