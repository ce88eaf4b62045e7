"""Domain types and ports for stocked catalog items.

This module contains the immutable ``CatalogItem`` value, the
``ItemFields`` DTO used for create/update input, the ``StockStatus``
classification and the ``ItemStore`` port the persistence layer
implements. The engine in ``shopping.inventory.engine`` operates on
these types only and never performs I/O.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, Protocol, Union
import uuid

from shopping.errors import ConflictError, InventoryError, NotFoundError


# ---- Enums ----
class StockStatus(str, Enum):
    """Classification of quantity-on-hand into stock bands."""

    OUT_OF_STOCK = "OUT_OF_STOCK"
    LOW_STOCK = "LOW_STOCK"
    MEDIUM_STOCK = "MEDIUM_STOCK"
    IN_STOCK = "IN_STOCK"


# Inclusive quantity band per status; None means unbounded.
STATUS_BANDS: dict[StockStatus, tuple[int, Optional[int]]] = {
    StockStatus.OUT_OF_STOCK: (0, 0),
    StockStatus.LOW_STOCK: (1, 9),
    StockStatus.MEDIUM_STOCK: (10, 49),
    StockStatus.IN_STOCK: (50, None),
}


def derive_status(quantity: int) -> StockStatus:
    """Classify a quantity on hand into its stock band.

    Bands are inclusive: 0 is OUT_OF_STOCK, 1-9 LOW_STOCK, 10-49
    MEDIUM_STOCK and 50 or more IN_STOCK. Quantities below zero cannot
    occur for a valid item and are reported as OUT_OF_STOCK.
    """
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity < 10:
        return StockStatus.LOW_STOCK
    if quantity < 50:
        return StockStatus.MEDIUM_STOCK
    return StockStatus.IN_STOCK


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class ItemFields:
    """Caller-supplied attributes of a catalog item.

    Used as input to both ``create`` and ``apply_update``; every field is
    validated on each call.
    """

    name: str
    price: Decimal
    quantity: int
    code: str
    description: Optional[str] = None
    contact: Optional[str] = None


@dataclass(frozen=True)
class CatalogItem:
    """One stocked product.

    Attributes:
        id: Opaque identifier assigned on creation, never changed.
        name: Display name.
        price: Unit price with exactly two fractional digits.
        description: Optional free text.
        quantity: Quantity on hand, never negative.
        code: Stock-keeping code (``AAA-999999``), unique among live items.
        contact: Optional contact email address.
        created_at: Set once on creation.
        updated_at: Refreshed on every mutation, never before ``created_at``.
        version: Persistence version used for optimistic concurrency checks.
            The engine carries it through unchanged; the store bumps it.

    The dataclass is frozen: every engine operation returns a new instance.
    """

    id: uuid.UUID
    name: str
    price: Decimal
    description: Optional[str]
    quantity: int
    code: str
    contact: Optional[str]
    created_at: datetime
    updated_at: datetime
    version: int = 0

    @property
    def status(self) -> StockStatus:
        return derive_status(self.quantity)


ItemResult = Union[CatalogItem, InventoryError]
ItemOperation = Callable[[CatalogItem], ItemResult]


# ---- Ports ----
class ItemStore(Protocol):
    """Port describing the persistence operations the catalog relies on.

    ``exists_by_code`` doubles as the ``code_in_use`` predicate passed to
    ``engine.apply_update``. ``mutate`` is the per-item mutual-exclusion
    region: the store reads the current item, applies the pure operation
    and persists the result atomically, so concurrent reservations on the
    same item cannot lose updates.
    """

    def find_by_id(self, item_id: uuid.UUID) -> Union[CatalogItem, NotFoundError]:
        raise NotImplementedError()

    def save(self, item: CatalogItem) -> Union[CatalogItem, ConflictError]:
        raise NotImplementedError()

    def exists_by_code(self, code: str) -> bool:
        raise NotImplementedError()

    def delete(self, item_id: uuid.UUID) -> Optional[NotFoundError]:
        raise NotImplementedError()

    def count_all(self) -> int:
        raise NotImplementedError()

    def mutate(self, item_id: uuid.UUID, operation: ItemOperation) -> ItemResult:
        raise NotImplementedError()
