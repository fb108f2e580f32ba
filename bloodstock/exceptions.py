# bloodstock/exceptions.py


class BloodStockError(Exception):
    """Base error for the stock engine. `code` is stable, `message` is operator facing."""

    code = "error"

    def __init__(self, message=""):
        self.message = message or self.code
        super().__init__(self.message)


class InvalidBloodType(BloodStockError):
    code = "invalid_blood_type"

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown blood type: {value!r}.")


class InvalidQuantity(BloodStockError):
    code = "invalid_quantity"

    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__(f"Quantity must be a positive number of ml, got {quantity!r}.")


class InvalidState(BloodStockError):
    code = "invalid_state"


class AlreadyCompleted(InvalidState):
    code = "already_completed"


class NotFound(BloodStockError):
    code = "not_found"


class LockTimeout(BloodStockError):
    code = "lock_timeout"


class IneligibleDonor(BloodStockError):
    code = "ineligible_donor"

    def __init__(self, days_remaining: int):
        self.days_remaining = days_remaining
        super().__init__(f"Donor must wait {days_remaining} more days before donating again.")


class InsufficientStock(BloodStockError):
    code = "insufficient_stock"

    def __init__(self, requested: int, available: int, compatible_types):
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        self.compatible_types = list(compatible_types)
        super().__init__(
            f"Insufficient compatible blood! Available: {available}ml, Requested: {requested}ml. "
            f"Need {self.shortfall}ml more. Compatible types: {', '.join(self.compatible_types)}"
        )

    def as_dict(self):
        return {
            "available": self.available,
            "shortfall": self.shortfall,
            "requested": self.requested,
            "compatible_types": self.compatible_types,
        }


class NoSingleTypeSufficient(InsufficientStock):
    """Compatible stock covers the request in total, but no one type does. Requests are never split."""

    code = "no_single_type_sufficient"

    def __init__(self, requested: int, available: int, compatible_types, largest_type: str, largest_ml: int):
        self.largest_type = largest_type
        self.largest_ml = largest_ml
        BloodStockError.__init__(
            self,
            f"No single compatible type holds {requested}ml (largest: {largest_ml}ml of {largest_type}). "
            f"Compatible stock in total is {available}ml but a request is fulfilled from one type only. "
            f"Compatible types: {', '.join(compatible_types)}",
        )
        self.requested = requested
        self.available = available
        self.shortfall = requested - largest_ml
        self.compatible_types = list(compatible_types)

    def as_dict(self):
        data = super().as_dict()
        data.update(largest_type=self.largest_type, largest_ml=self.largest_ml)
        return data


class ConsistencyViolation(BloodStockError):
    """Derived stock went negative. Always a concurrency or ledger bug, never an operator error."""

    code = "consistency_violation"

    def __init__(self, blood_type: str, available: int):
        self.blood_type = blood_type
        self.available = available
        super().__init__(f"Ledger inconsistency: {blood_type} available is {available}ml.")
