# bloodstock/states.py
from django.conf import settings
from django.db import models

from .exceptions import InvalidState


class DonationStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"
    COMPLETED = "COMPLETED", "Completed"


class RequestStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"
    FULFILLED = "FULFILLED", "Fulfilled"


DONATION_TRANSITIONS = {
    DonationStatus.PENDING: {DonationStatus.APPROVED, DonationStatus.REJECTED},
    DonationStatus.APPROVED: {DonationStatus.COMPLETED, DonationStatus.REJECTED},
    DonationStatus.REJECTED: set(),
    DonationStatus.COMPLETED: set(),
}

REQUEST_TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.APPROVED, RequestStatus.REJECTED},
    RequestStatus.APPROVED: {RequestStatus.FULFILLED, RequestStatus.REJECTED},
    RequestStatus.REJECTED: set(),
    RequestStatus.FULFILLED: set(),
}


def fulfill_from_pending_allowed() -> bool:
    return bool(getattr(settings, "BLOODSTOCK_FULFILL_FROM_PENDING", False))


def donation_targets(current) -> set:
    return set(DONATION_TRANSITIONS[DonationStatus(current)])


def request_targets(current) -> set:
    targets = set(REQUEST_TRANSITIONS[RequestStatus(current)])
    if current == RequestStatus.PENDING and fulfill_from_pending_allowed():
        targets.add(RequestStatus.FULFILLED)
    return targets


def check_donation_transition(current, target):
    if DonationStatus(target) not in donation_targets(current):
        raise InvalidState(
            f"Donation cannot move from {DonationStatus(current).label} to {DonationStatus(target).label}."
        )


def check_request_transition(current, target):
    if RequestStatus(target) not in request_targets(current):
        raise InvalidState(
            f"Request cannot move from {RequestStatus(current).label} to {RequestStatus(target).label}."
        )
