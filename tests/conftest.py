"""Pytest configuration and fixtures."""
import itertools

import pytest

from bloodstock.ledger import ledger as stock_ledger
from bloodstock.models import BloodRequest, BloodType, Donation, Donor

_national_ids = itertools.count(100000000)


@pytest.fixture
def blood_types(db):
    """The eight reference rows (flushed tables are re-seeded)."""
    return {bt.name: bt for bt in BloodType.objects.seed()}


@pytest.fixture
def ledger(blood_types):
    return stock_ledger


@pytest.fixture
def stock(ledger):
    """stock("O-", 500) appends a Collected event."""
    def add(code, quantity_ml):
        return ledger.collect(code, quantity_ml)
    return add


@pytest.fixture
def make_donor(blood_types):
    def make(code="O+", **kwargs):
        kwargs.setdefault("full_name", "Test Donor")
        return Donor.objects.create(
            national_id=str(next(_national_ids)),
            blood_type=blood_types[code],
            **kwargs,
        )
    return make


@pytest.fixture
def make_donation(make_donor):
    def make(code="O+", quantity_ml=450, status=Donation.Status.APPROVED, donor=None, **kwargs):
        return Donation.objects.create(
            donor=donor or make_donor(code),
            quantity_ml=quantity_ml,
            status=status,
            **kwargs,
        )
    return make


@pytest.fixture
def make_request(blood_types):
    def make(code="A+", quantity_ml=300, status=BloodRequest.Status.APPROVED, **kwargs):
        kwargs.setdefault("hospital_name", "Rambam Health Care Campus")
        return BloodRequest.objects.create(
            blood_type=blood_types[code],
            quantity_ml=quantity_ml,
            status=status,
            **kwargs,
        )
    return make
