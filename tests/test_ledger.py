"""Ledger accounting and validation."""
import logging

import pytest

from bloodstock.exceptions import ConsistencyViolation, InvalidBloodType, InvalidQuantity, InvalidState
from bloodstock.ledger import StockStatus, stock_status
from bloodstock.models import BloodType, LedgerEvent


def test_empty_ledger_has_no_stock(ledger):
    assert ledger.availability() == {code: 0 for code in ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]}
    assert ledger.total_collected() == 0
    assert ledger.total_issued() == 0


def test_available_is_collected_minus_issued(ledger):
    events = [
        ("O-", "COLLECTED", 500), ("O-", "COLLECTED", 250), ("O-", "ISSUED", 300),
        ("A+", "COLLECTED", 450), ("A+", "ISSUED", 450),
        ("B-", "COLLECTED", 100),
    ]
    with ledger.locked(["O-", "A+", "B-"]):
        for code, kind, qty in events:
            ledger.append(code, kind, qty)

    for code in ["O-", "A+", "B-", "AB+"]:
        collected = sum(q for c, k, q in events if c == code and k == "COLLECTED")
        issued = sum(q for c, k, q in events if c == code and k == "ISSUED")
        assert ledger.collected_ml(code) == collected
        assert ledger.issued_ml(code) == issued
        assert ledger.available_ml(code) == collected - issued

    assert ledger.total_collected() == 1300
    assert ledger.total_issued() == 750
    assert ledger.total_available() == 550


def test_available_for_a_set(ledger, stock):
    stock("O-", 500)
    stock("B-", 200)
    stock("A+", 900)
    assert ledger.available_ml_for(["O-", "B-"]) == 700
    assert ledger.available_ml_for({"O-", "B-", "AB-"}) == 700


@pytest.mark.parametrize("quantity", [0, -5, 1.5, "10", True, None])
def test_rejects_non_positive_or_non_integer_quantity(ledger, quantity):
    with pytest.raises(InvalidQuantity):
        ledger.collect("O+", quantity)
    assert LedgerEvent.objects.count() == 0


def test_rejects_unknown_type(ledger):
    with pytest.raises(InvalidBloodType):
        ledger.collect("Z+", 100)
    with pytest.raises(InvalidBloodType):
        ledger.available_ml("Z+")


def test_unseeded_type_is_reported(ledger):
    BloodType.objects.filter(name="AB-").delete()
    with pytest.raises(InvalidBloodType):
        ledger.available_ml("AB-")


def test_events_are_immutable(ledger, stock):
    event = stock("O+", 400)
    event.quantity_ml = 10
    with pytest.raises(InvalidState):
        event.save()
    with pytest.raises(InvalidState):
        event.delete()
    with pytest.raises(InvalidState):
        LedgerEvent.objects.all().delete()
    with pytest.raises(InvalidState):
        LedgerEvent.objects.update(quantity_ml=1)
    assert ledger.available_ml("O+") == 400


def test_negative_stock_is_a_consistency_violation(ledger, stock, caplog):
    stock("AB-", 100)
    with ledger.locked(["AB-"]):
        ledger.issue("AB-", 150)
    with caplog.at_level(logging.CRITICAL, logger="bloodstock.consistency"):
        with pytest.raises(ConsistencyViolation) as exc:
            ledger.available_ml("AB-")
    assert exc.value.blood_type == "AB-"
    assert exc.value.available == -50
    assert "Negative stock for AB-" in caplog.text


@pytest.mark.parametrize("available,status", [
    (-1, StockStatus.OUT_OF_STOCK),
    (0, StockStatus.OUT_OF_STOCK),
    (1, StockStatus.CRITICAL),
    (999, StockStatus.CRITICAL),
    (1000, StockStatus.LOW_STOCK),
    (1999, StockStatus.LOW_STOCK),
    (2000, StockStatus.SUFFICIENT),
])
def test_stock_status_thresholds(available, status):
    assert stock_status(available) == status


def test_distribution(ledger, stock):
    stock("O-", 2500)
    stock("A+", 1200)
    with ledger.locked(["A+"]):
        ledger.issue("A+", 300)
    levels = {level.blood_type: level for level in ledger.distribution()}

    assert len(levels) == 8
    assert levels["O-"].status == StockStatus.SUFFICIENT
    assert (levels["A+"].collected_ml, levels["A+"].issued_ml, levels["A+"].available_ml) == (1200, 300, 900)
    assert levels["A+"].status == StockStatus.CRITICAL
    assert levels["B+"].status == StockStatus.OUT_OF_STOCK
    assert levels["O-"].description == "O Negative (Universal Donor)"


def test_issue_requires_the_type_lock(ledger, stock):
    stock("O-", 500)
    with pytest.raises(InvalidState):
        ledger.issue("O-", 100)
    with ledger.locked(["A+"]):
        with pytest.raises(InvalidState):
            ledger.issue("O-", 100)
    assert LedgerEvent.objects.issued().count() == 0
    assert ledger.available_ml("O-") == 500
