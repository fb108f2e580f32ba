"""Racing fulfilments and completions never overdraw or double count stock."""
import threading

import pytest
from django.db import connection, transaction

from bloodstock.allocation import AllocationEngine
from bloodstock.exceptions import AlreadyCompleted, BloodStockError, InsufficientStock, LockTimeout
from bloodstock.intake import complete_donation
from bloodstock.locks import TypeLocks
from bloodstock.models import BloodRequest, LedgerEvent

pytestmark = pytest.mark.django_db(transaction=True)


def run_concurrently(func, args):
    barrier = threading.Barrier(len(args))
    results, failures, unexpected = [], [], []
    guard = threading.Lock()

    def worker(arg):
        try:
            barrier.wait()
            outcome = func(arg)
            with guard:
                results.append(outcome)
        except BloodStockError as exc:
            with guard:
                failures.append(exc)
        except Exception as exc:  # surfaced through the assertion below
            with guard:
                unexpected.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(arg,)) for arg in args]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert not unexpected, unexpected
    return results, failures


def test_racing_fulfilments_stop_at_available_stock(ledger, stock, make_request):
    stock("O-", 1000)
    request_ids = [make_request("O-", 300).pk for _ in range(8)]

    results, failures = run_concurrently(AllocationEngine(ledger).fulfill, request_ids)

    assert len(results) == 3
    assert len(failures) == 5
    assert all(isinstance(exc, InsufficientStock) for exc in failures)
    assert ledger.available_ml("O-") == 100
    assert LedgerEvent.objects.issued().count() == 3
    assert BloodRequest.objects.filter(status=BloodRequest.Status.FULFILLED).count() == 3


def test_overlapping_compatible_sets_share_the_same_stock(ledger, stock, make_request):
    stock("O-", 600)
    request_ids = [make_request(code, 300).pk for code in ["A+", "A+", "B+", "B+", "O-", "AB-"]]

    results, failures = run_concurrently(AllocationEngine(ledger).fulfill, request_ids)

    assert len(results) == 2
    assert {a.chosen_type for a in results} == {"O-"}
    assert len(failures) == 4
    assert ledger.available_ml("O-") == 0


def test_disjoint_types_both_succeed(ledger, stock, make_request):
    stock("A-", 300)
    stock("B-", 300)
    request_ids = [make_request("A-", 300).pk, make_request("B-", 300).pk]

    results, failures = run_concurrently(AllocationEngine(ledger).fulfill, request_ids)

    assert not failures
    assert sorted(a.chosen_type for a in results) == ["A-", "B-"]


def test_racing_completions_collect_once(ledger, make_donation):
    donation = make_donation("AB-", 450)

    results, failures = run_concurrently(lambda pk: complete_donation(pk), [donation.pk] * 5)

    assert len(results) == 1
    assert len(failures) == 4
    assert all(isinstance(exc, AlreadyCompleted) for exc in failures)
    assert LedgerEvent.objects.collected().count() == 1
    assert ledger.available_ml("AB-") == 450


def test_type_locks_are_ordered_and_time_out():
    locks = TypeLocks()
    assert locks.ordered(["O-", "AB-", "a+", "O-"]) == ["AB-", "A+", "O-"]

    with locks.hold(["O-"]):
        with pytest.raises(LockTimeout):
            with locks.hold(["A+", "O-"], timeout=0.05):
                pass
        # A+ was released when O- timed out
        with locks.hold(["A+"], timeout=0.05):
            pass


def test_held_types_are_per_thread():
    locks = TypeLocks()
    seen = []

    with locks.hold(["B-"]):
        assert locks.is_held("B-")
        worker = threading.Thread(target=lambda: seen.append(locks.is_held("B-")))
        worker.start()
        worker.join()
    assert seen == [False]
    assert not locks.is_held("B-")


def test_fulfilment_inside_outer_transaction_rolls_back_with_it(ledger, stock, make_request):
    stock("O-", 500)
    req = make_request("O-", 300)

    with pytest.raises(RuntimeError):
        with transaction.atomic():
            AllocationEngine(ledger).fulfill(req.pk)
            assert ledger.available_ml("O-") == 200
            raise RuntimeError("outer request failed")

    assert ledger.available_ml("O-") == 500
    assert LedgerEvent.objects.issued().count() == 0
    req.refresh_from_db()
    assert req.status == BloodRequest.Status.APPROVED
