"""Request and donation status machines."""
import pytest

from bloodstock.exceptions import InvalidState
from bloodstock.states import (
    DonationStatus, RequestStatus,
    check_donation_transition, check_request_transition, request_targets,
)


@pytest.mark.parametrize("current,target", [
    (RequestStatus.PENDING, RequestStatus.APPROVED),
    (RequestStatus.PENDING, RequestStatus.REJECTED),
    (RequestStatus.APPROVED, RequestStatus.FULFILLED),
    (RequestStatus.APPROVED, RequestStatus.REJECTED),
])
def test_request_allowed(current, target):
    check_request_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (RequestStatus.PENDING, RequestStatus.FULFILLED),
    (RequestStatus.FULFILLED, RequestStatus.FULFILLED),
    (RequestStatus.FULFILLED, RequestStatus.REJECTED),
    (RequestStatus.REJECTED, RequestStatus.APPROVED),
    (RequestStatus.REJECTED, RequestStatus.FULFILLED),
    (RequestStatus.APPROVED, RequestStatus.PENDING),
])
def test_request_refused(current, target):
    with pytest.raises(InvalidState):
        check_request_transition(current, target)


def test_pending_fulfil_follows_setting(settings):
    settings.BLOODSTOCK_FULFILL_FROM_PENDING = True
    assert RequestStatus.FULFILLED in request_targets(RequestStatus.PENDING)
    check_request_transition("PENDING", "FULFILLED")

    settings.BLOODSTOCK_FULFILL_FROM_PENDING = False
    assert RequestStatus.FULFILLED not in request_targets(RequestStatus.PENDING)


def test_setting_never_reopens_terminal_states(settings):
    settings.BLOODSTOCK_FULFILL_FROM_PENDING = True
    with pytest.raises(InvalidState):
        check_request_transition(RequestStatus.REJECTED, RequestStatus.FULFILLED)


@pytest.mark.parametrize("current,target", [
    (DonationStatus.PENDING, DonationStatus.APPROVED),
    (DonationStatus.PENDING, DonationStatus.REJECTED),
    (DonationStatus.APPROVED, DonationStatus.COMPLETED),
    (DonationStatus.APPROVED, DonationStatus.REJECTED),
])
def test_donation_allowed(current, target):
    check_donation_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (DonationStatus.PENDING, DonationStatus.COMPLETED),
    (DonationStatus.COMPLETED, DonationStatus.COMPLETED),
    (DonationStatus.COMPLETED, DonationStatus.REJECTED),
    (DonationStatus.REJECTED, DonationStatus.APPROVED),
])
def test_donation_refused(current, target):
    with pytest.raises(InvalidState):
        check_donation_transition(current, target)


def test_unknown_status_value():
    with pytest.raises(ValueError):
        check_request_transition("Pending", "APPROVED")
