"""Inventory engine: the state transitions of a catalog item.

Every operation is a pure function of the item it is given. It returns
the next ``CatalogItem`` on success or an error value from
``shopping.errors`` on failure; nothing is raised, logged or persisted
here. Fetching the current item and saving the result, under per-item
mutual exclusion, is the caller's job (see ``ItemStore.mutate``).

Timestamps come from the ``now`` argument when given, otherwise from the
UTC system clock. ``updated_at`` never moves before its previous value,
so ``created_at <= updated_at`` holds even if the clock steps backwards.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional, Union
import uuid

from shopping.errors import ConflictError, InsufficientStockError, ValidationError
from shopping.inventory.domain import CatalogItem, ItemFields, derive_status
from shopping.inventory.validation import CENTS, to_price, validate_fields, validate_quantity

__all__ = [
    "apply_update",
    "create",
    "derive_status",
    "reserve",
    "restock",
    "set_stock",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _touch(item: CatalogItem, now: Optional[datetime]) -> datetime:
    now = now or _utcnow()
    return max(now, item.updated_at)


def _positive_amount(amount, field: str = "amount") -> Optional[ValidationError]:
    if isinstance(amount, bool) or not isinstance(amount, int):
        return ValidationError(field, amount, "must be an integer")
    if amount <= 0:
        return ValidationError(field, amount, "must be greater than zero")
    return None


def create(
    fields: ItemFields, *, now: Optional[datetime] = None
) -> Union[CatalogItem, ValidationError]:
    """Build a new catalog item from validated input.

    Both timestamps are set to the same instant and a fresh identifier is
    assigned. Uniqueness of ``code`` is a store concern and is checked by
    the caller before saving.

    Args:
        fields: Caller-supplied attributes.
        now: Optional creation instant.

    Returns:
        The new item, or the first ValidationError found.
    """
    error = validate_fields(fields)
    if error is not None:
        return error
    now = now or _utcnow()
    return CatalogItem(
        id=uuid.uuid4(),
        name=fields.name,
        price=to_price(fields.price).quantize(CENTS),
        description=fields.description,
        quantity=fields.quantity,
        code=fields.code,
        contact=fields.contact,
        created_at=now,
        updated_at=now,
    )


def apply_update(
    item: CatalogItem,
    fields: ItemFields,
    code_in_use: Callable[[str], bool],
    *,
    now: Optional[datetime] = None,
) -> Union[CatalogItem, ValidationError, ConflictError]:
    """Replace the caller-controlled attributes of ``item``.

    All fields are re-validated. ``code_in_use`` is consulted only when the
    stock-keeping code actually changes; identity and ``created_at`` are
    preserved.
    """
    error = validate_fields(fields)
    if error is not None:
        return error
    if fields.code != item.code and code_in_use(fields.code):
        return ConflictError("code", fields.code)
    return replace(
        item,
        name=fields.name,
        price=to_price(fields.price).quantize(CENTS),
        description=fields.description,
        quantity=fields.quantity,
        code=fields.code,
        contact=fields.contact,
        updated_at=_touch(item, now),
    )


def set_stock(
    item: CatalogItem, new_quantity: int, *, now: Optional[datetime] = None
) -> Union[CatalogItem, ValidationError]:
    """Set the quantity on hand to an absolute value.

    ``updated_at`` is refreshed even when the quantity does not change; an
    explicit stock count is an administrative touch in its own right.
    """
    error = validate_quantity(new_quantity)
    if error is not None:
        return error
    return replace(item, quantity=new_quantity, updated_at=_touch(item, now))


def reserve(
    item: CatalogItem, amount: int, *, now: Optional[datetime] = None
) -> Union[CatalogItem, ValidationError, InsufficientStockError]:
    """Take ``amount`` units out of stock.

    Returns:
        The item with ``quantity`` decreased by exactly ``amount``;
        InsufficientStockError when ``amount`` exceeds the quantity on hand;
        ValidationError when ``amount`` is not a positive integer.
    """
    error = _positive_amount(amount)
    if error is not None:
        return error
    if amount > item.quantity:
        return InsufficientStockError(item.id, amount, item.quantity)
    return replace(item, quantity=item.quantity - amount, updated_at=_touch(item, now))


def restock(
    item: CatalogItem, amount: int, *, now: Optional[datetime] = None
) -> Union[CatalogItem, ValidationError]:
    """Add ``amount`` units to stock."""
    error = _positive_amount(amount)
    if error is not None:
        return error
    return replace(item, quantity=item.quantity + amount, updated_at=_touch(item, now))