"""Pydantic schemas for the catalog HTTP API.

Request schemas only check JSON shape and types. Business constraints
(name length, price range, code pattern, email syntax, positive amounts)
belong to ``shopping.inventory`` so that they are reported as a
field-level ``VALIDATION_ERROR`` regardless of the caller.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from shopping.inventory.domain import ItemFields, StockStatus


class ProductIn(BaseModel):
    """Request body for creating or fully updating a product.

    Attributes:
        name: Display name.
        price: Unit price; sent as a JSON number or string.
        description: Optional free text.
        quantity: Quantity on hand.
        code: Stock-keeping code, ``AAA-999999``.
        contact: Optional contact email address.
    """

    name: str
    price: Decimal
    description: Optional[str] = None
    quantity: int
    code: str
    contact: Optional[str] = None

    def to_fields(self) -> ItemFields:
        return ItemFields(
            name=self.name,
            price=self.price,
            description=self.description,
            quantity=self.quantity,
            code=self.code,
            contact=self.contact,
        )


class AmountIn(BaseModel):
    """Request body for reserve and restock."""

    amount: int


class StockIn(BaseModel):
    """Request body for setting an absolute stock level."""

    quantity: int


class ProductOut(BaseModel):
    """Response body for a single product, including its stock status."""

    id: uuid.UUID
    name: str
    price: Decimal
    description: Optional[str] = None
    quantity: int
    code: str
    contact: Optional[str] = None
    status: StockStatus
    created_at: datetime
    updated_at: datetime


class ProductPage(BaseModel):
    count: int
    page: int
    page_size: int
    results: list[ProductOut]


class ProductCount(BaseModel):
    count: int
