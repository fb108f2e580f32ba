# bloodstock/compat.py
from .exceptions import InvalidBloodType

# Red cell compatibility by recipient type.
# key: recipient type, value: donor types that may be transfused into it
DONORS_BY_RECIPIENT = {
    "O-":  ("O-",),
    "O+":  ("O-", "O+"),
    "A-":  ("O-", "A-"),
    "A+":  ("O-", "O+", "A-", "A+"),
    "B-":  ("O-", "B-"),
    "B+":  ("O-", "O+", "B-", "B+"),
    "AB-": ("O-", "A-", "B-", "AB-"),
    "AB+": ("O-", "O+", "A-", "A+", "B-", "B+", "AB-", "AB+"),  # universal recipient
}

# Substitutes are tried rarest first so that O- is drawn only when nothing else fits.
SCARCITY_ORDER = ("AB-", "B-", "A-", "AB+", "B+", "A+", "O+", "O-")


def normalize_type(blood_type: str) -> str:
    code = (blood_type or "").strip().upper()
    if code not in DONORS_BY_RECIPIENT:
        raise InvalidBloodType(blood_type)
    return code


def compatible_types(recipient: str) -> frozenset[str]:
    """Donor types that can supply `recipient`. Always contains `recipient` itself."""
    return frozenset(DONORS_BY_RECIPIENT[normalize_type(recipient)])


def is_compatible(donor: str, recipient: str) -> bool:
    return normalize_type(donor) in compatible_types(recipient)


def fulfillment_priority(recipient: str) -> list[str]:
    """
    Order in which donor types are tried for a request of `recipient`:
    the exact type first, then the remaining compatible types by SCARCITY_ORDER.
    """
    code = normalize_type(recipient)
    allowed = DONORS_BY_RECIPIENT[code]
    return [code] + [bt for bt in SCARCITY_ORDER if bt != code and bt in allowed]


def recipients_for_donor(donor: str) -> list[str]:
    code = normalize_type(donor)
    return [recipient for recipient, donors in DONORS_BY_RECIPIENT.items() if code in donors]
