# bloodstock/allocation.py
import logging
from dataclasses import dataclass

from django.utils import timezone

from .compat import fulfillment_priority
from .exceptions import InsufficientStock, NoSingleTypeSufficient, NotFound
from .ledger import Ledger, ledger as default_ledger
from .models import BloodRequest
from .states import RequestStatus, check_request_transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allocation:
    request_id: int
    requested_type: str
    chosen_type: str
    quantity_ml: int
    remaining_ml: int

    @property
    def substituted(self) -> bool:
        return self.chosen_type != self.requested_type

    @property
    def message(self) -> str:
        if not self.substituted:
            return (f"Blood request fulfilled successfully with {self.chosen_type}. "
                    f"Remaining: {self.remaining_ml}ml")
        return (f"Blood request fulfilled successfully using compatible blood type {self.chosen_type} "
                f"(requested: {self.requested_type}). Remaining {self.chosen_type}: {self.remaining_ml}ml")


def get_request(request_id, for_update=False) -> BloodRequest:
    qs = BloodRequest.objects.select_related("blood_type")
    if for_update:
        qs = qs.select_for_update(of=("self",))
    try:
        return qs.get(pk=request_id)
    except BloodRequest.DoesNotExist:
        raise NotFound(f"Blood request {request_id} not found.")


def choose_type(priority, availability: dict, quantity_ml: int):
    """First type in `priority` holding the whole quantity on its own, or None."""
    for code in priority:
        if availability.get(code, 0) >= quantity_ml:
            return code
    return None


def shortage(priority, availability: dict, quantity_ml: int) -> InsufficientStock:
    total = sum(availability.get(code, 0) for code in priority)
    if total < quantity_ml:
        return InsufficientStock(quantity_ml, total, priority)
    largest = max(priority, key=lambda code: availability.get(code, 0))
    return NoSingleTypeSufficient(quantity_ml, total, priority, largest, availability.get(largest, 0))


class AllocationEngine:
    def __init__(self, ledger: Ledger = None):
        self.ledger = ledger or default_ledger

    def plan(self, request_id):
        """Dry run: (chosen type or None, availability snapshot). Takes no locks and writes nothing."""
        req = get_request(request_id)
        priority = fulfillment_priority(req.blood_type.name)
        snapshot = self.ledger.availability(priority)
        return choose_type(priority, snapshot, req.quantity_ml), snapshot

    def fulfill(self, request_id) -> Allocation:
        requested_type = get_request(request_id).blood_type.name
        priority = fulfillment_priority(requested_type)

        with self.ledger.locked(priority) as rows:
            req = get_request(request_id, for_update=True)
            check_request_transition(req.status, RequestStatus.FULFILLED)

            snapshot = self.ledger.availability(priority)
            chosen = choose_type(priority, snapshot, req.quantity_ml)
            if chosen is None:
                exc = shortage(priority, snapshot, req.quantity_ml)
                logger.warning("Request %s (%s %sml) not fulfilled: %s",
                               req.pk, requested_type, req.quantity_ml, exc.message)
                raise exc

            self.ledger.issue(rows[chosen], req.quantity_ml, blood_request=req)
            req.transition_to(RequestStatus.FULFILLED)
            req.fulfilled_with = rows[chosen]
            req.fulfilled_at = timezone.now()
            req.save(update_fields=["status", "fulfilled_with", "fulfilled_at"])

            remaining = self.ledger.available_ml(chosen)

        logger.info("Request %s fulfilled: requested %s, issued %sml of %s, %sml left",
                    req.pk, requested_type, req.quantity_ml, chosen, remaining)
        return Allocation(
            request_id=req.pk,
            requested_type=requested_type,
            chosen_type=chosen,
            quantity_ml=req.quantity_ml,
            remaining_ml=remaining,
        )

