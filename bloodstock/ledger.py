# bloodstock/ledger.py
"""
Append-only stock ledger.

Available stock is never stored: for every type it is derived as
sum(Collected) - sum(Issued) over LedgerEvent rows. Callers that decide on
stock and then write (fulfilment, donation completion) must do both inside
`Ledger.locked()`.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass

from django.db import models, transaction
from django.db.models import Q, Sum

from .compat import normalize_type
from .exceptions import ConsistencyViolation, InvalidBloodType, InvalidQuantity, InvalidState
from .locks import type_locks
from .models import BloodType, LedgerEvent

logger = logging.getLogger(__name__)
consistency_logger = logging.getLogger("bloodstock.consistency")

CRITICAL_THRESHOLD_ML = 1000
LOW_STOCK_THRESHOLD_ML = 2000


class StockStatus(models.TextChoices):
    OUT_OF_STOCK = "OUT_OF_STOCK", "Out of Stock"
    CRITICAL = "CRITICAL", "Critical"
    LOW_STOCK = "LOW_STOCK", "Low Stock"
    SUFFICIENT = "SUFFICIENT", "Sufficient"


def stock_status(available_ml: int) -> StockStatus:
    if available_ml <= 0:
        return StockStatus.OUT_OF_STOCK
    if available_ml < CRITICAL_THRESHOLD_ML:
        return StockStatus.CRITICAL
    if available_ml < LOW_STOCK_THRESHOLD_ML:
        return StockStatus.LOW_STOCK
    return StockStatus.SUFFICIENT


@dataclass(frozen=True)
class StockLevel:
    blood_type: str
    description: str
    collected_ml: int
    issued_ml: int

    @property
    def available_ml(self) -> int:
        return self.collected_ml - self.issued_ml

    @property
    def status(self) -> StockStatus:
        return stock_status(self.available_ml)


def _code(blood_type) -> str:
    if isinstance(blood_type, BloodType):
        return blood_type.name
    return normalize_type(blood_type)


class Ledger:
    # -------------------- writes --------------------
    def append(self, blood_type, kind, quantity_ml, *, donation=None, blood_request=None) -> LedgerEvent:
        if isinstance(quantity_ml, bool) or not isinstance(quantity_ml, int) or quantity_ml <= 0:
            raise InvalidQuantity(quantity_ml)
        kind = LedgerEvent.Kind(kind)
        bt = blood_type if isinstance(blood_type, BloodType) else self.blood_type(blood_type)
        if kind == LedgerEvent.Kind.ISSUED and not type_locks.is_held(bt.name):
            raise InvalidState(f"Issuing {bt.name} requires Ledger.locked() on that type.")

        with transaction.atomic():
            event = LedgerEvent.objects.create(
                blood_type=bt,
                kind=kind,
                quantity_ml=quantity_ml,
                donation=donation,
                blood_request=blood_request,
            )
        logger.info("Ledger %s %s %sml (event %s)", kind.label, bt.name, quantity_ml, event.pk)
        return event

    def collect(self, blood_type, quantity_ml, *, donation=None) -> LedgerEvent:
        return self.append(blood_type, LedgerEvent.Kind.COLLECTED, quantity_ml, donation=donation)

    def issue(self, blood_type, quantity_ml, *, blood_request=None) -> LedgerEvent:
        """
        Append an Issued event. No availability check is made here: the caller
        decides on stock (AllocationEngine.fulfill) and must hold `locked()`
        on the type, otherwise InvalidState is raised.
        """
        return self.append(blood_type, LedgerEvent.Kind.ISSUED, quantity_ml, blood_request=blood_request)

    @contextmanager
    def locked(self, blood_types):
        """
        Serialise read-decide-write on the given types: per-type process locks,
        then a transaction holding row locks on the BloodType rows.
        Yields {code: BloodType}.

        The process locks are released when this block exits. Inside an outer
        transaction (ATOMIC_REQUESTS, a caller's atomic()) the new events only
        commit with that outer transaction: on PostgreSQL the row locks keep
        other writers out until then, on SQLite a concurrent writer may get
        "database is locked". Call it outside outer transactions on SQLite.
        """
        codes = type_locks.ordered(_code(bt) for bt in blood_types)
        with type_locks.hold(codes):
            with transaction.atomic():
                rows = BloodType.objects.select_for_update().filter(name__in=codes).order_by("id")
                yield {bt.name: bt for bt in rows}

    # -------------------- reads --------------------
    def blood_type(self, code) -> BloodType:
        code = _code(code)
        try:
            return BloodType.objects.get(name=code)
        except BloodType.DoesNotExist:
            raise InvalidBloodType(code)

    def collected_ml(self, blood_type=None) -> int:
        qs = LedgerEvent.objects.collected()
        if blood_type is not None:
            qs = qs.for_types([_code(blood_type)])
        return qs.total_ml()

    def issued_ml(self, blood_type=None) -> int:
        qs = LedgerEvent.objects.issued()
        if blood_type is not None:
            qs = qs.for_types([_code(blood_type)])
        return qs.total_ml()

    def total_collected(self) -> int:
        return self.collected_ml()

    def total_issued(self) -> int:
        return self.issued_ml()

    def total_available(self) -> int:
        return sum(self.availability().values())

    def available_ml(self, blood_type) -> int:
        code = _code(blood_type)
        return self.availability([code])[code]

    def available_ml_for(self, blood_types) -> int:
        return sum(self.availability(blood_types).values())

    def availability(self, blood_types=None) -> dict:
        """{code: available ml} for the given types (all eight when omitted)."""
        levels = self._levels(blood_types)
        return {code: level.available_ml for code, level in levels.items()}

    def distribution(self) -> list:
        return list(self._levels().values())

    def _levels(self, blood_types=None) -> dict:
        if blood_types is None:
            codes = list(BloodType.objects.values_list("name", flat=True))
        else:
            codes = [_code(bt) for bt in blood_types]

        rows = (
            BloodType.objects.filter(name__in=codes)
            .annotate(
                collected=Sum("ledger_events__quantity_ml", filter=Q(ledger_events__kind=LedgerEvent.Kind.COLLECTED)),
                issued=Sum("ledger_events__quantity_ml", filter=Q(ledger_events__kind=LedgerEvent.Kind.ISSUED)),
            )
            .order_by("id")
        )
        levels = {}
        for row in rows:
            level = StockLevel(
                blood_type=row.name,
                description=row.description,
                collected_ml=row.collected or 0,
                issued_ml=row.issued or 0,
            )
            if level.available_ml < 0:
                self._violation(level)
            levels[row.name] = level

        missing = [code for code in codes if code not in levels]
        if missing:
            raise InvalidBloodType(missing[0])
        # keep the caller's order (priority lists rely on it)
        return {code: levels[code] for code in codes}

    def _violation(self, level: StockLevel):
        consistency_logger.critical(
            "Negative stock for %s: collected=%s issued=%s available=%s",
            level.blood_type, level.collected_ml, level.issued_ml, level.available_ml,
        )
        raise ConsistencyViolation(level.blood_type, level.available_ml)


ledger = Ledger()
