"""Field validation for catalog item input.

Each check returns the first violated constraint as a ``ValidationError``
value, or ``None`` when the input is acceptable. Checks run in a fixed
order (name, price, description, quantity, code, contact) so the reported
field is deterministic.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from shopping.errors import ValidationError
from shopping.inventory.domain import ItemFields

CODE_RE = re.compile(r"[A-Z]{3}-[0-9]{6}")
EMAIL_RE = re.compile(r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~.-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+")

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
PRICE_MIN = Decimal("0.01")
PRICE_MAX = Decimal("999999.99")
CENTS = Decimal("0.01")


def to_price(value: Any) -> Optional[Decimal]:
    """Coerce ``value`` to a finite Decimal, or None if it is not numeric.

    Floats go through ``str`` so that ``19.99`` becomes ``Decimal("19.99")``
    rather than its binary expansion.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = str(value)
    try:
        price = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return price if price.is_finite() else None


def validate_name(name: Any) -> Optional[ValidationError]:
    if not isinstance(name, str) or not name.strip():
        return ValidationError("name", name, "must not be blank")
    if len(name) > NAME_MAX_LENGTH:
        return ValidationError("name", name, f"must be at most {NAME_MAX_LENGTH} characters")
    return None


def validate_price(price: Any) -> Optional[ValidationError]:
    amount = to_price(price)
    if amount is None:
        return ValidationError("price", price, "must be a decimal number")
    if amount < PRICE_MIN or amount > PRICE_MAX:
        return ValidationError("price", price, f"must be between {PRICE_MIN} and {PRICE_MAX}")
    if amount != amount.quantize(CENTS):
        return ValidationError("price", price, "must have at most 2 fractional digits")
    return None


def validate_description(description: Any) -> Optional[ValidationError]:
    if description is None:
        return None
    if not isinstance(description, str):
        return ValidationError("description", description, "must be text")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        return ValidationError(
            "description", description, f"must be at most {DESCRIPTION_MAX_LENGTH} characters"
        )
    return None


def validate_quantity(quantity: Any, field: str = "quantity") -> Optional[ValidationError]:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return ValidationError(field, quantity, "must be an integer")
    if quantity < 0:
        return ValidationError(field, quantity, "must not be negative")
    return None


def validate_code(code: Any) -> Optional[ValidationError]:
    if not isinstance(code, str) or not CODE_RE.fullmatch(code):
        return ValidationError("code", code, "must match AAA-999999 (3 uppercase letters, hyphen, 6 digits)")
    return None


def validate_contact(contact: Any) -> Optional[ValidationError]:
    if contact is None:
        return None
    if not isinstance(contact, str) or not EMAIL_RE.fullmatch(contact) or ".." in contact:
        return ValidationError("contact", contact, "must be a well-formed email address")
    return None


def validate_fields(fields: ItemFields) -> Optional[ValidationError]:
    """Return the first constraint ``fields`` violates, or None.

    Args:
        fields: Create or update input.

    Returns:
        ValidationError | None: The first failure in field order.
    """
    checks = (
        lambda: validate_name(fields.name),
        lambda: validate_price(fields.price),
        lambda: validate_description(fields.description),
        lambda: validate_quantity(fields.quantity),
        lambda: validate_code(fields.code),
        lambda: validate_contact(fields.contact),
    )
    for check in checks:
        error = check()
        if error is not None:
            return error
    return None
