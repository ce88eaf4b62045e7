"""Error kinds returned by the inventory engine, item store and flattener.

These are plain values, not exceptions: operations return either their
success value or one of the dataclasses below, and the caller checks the
type (``isinstance(result, InventoryError)``) to decide what to do. Only
the HTTP boundary turns them into status codes.
"""

from dataclasses import dataclass, fields
from typing import Any, ClassVar


@dataclass(frozen=True)
class InventoryError:
    """Base class for every typed failure result."""

    code: ClassVar[str] = "ERROR"

    def to_dict(self) -> dict:
        """Render the error as a JSON-ready payload with a ``detail`` code."""
        body = {"detail": self.code}
        for f in fields(self):
            body[f.name] = getattr(self, f.name)
        return body


@dataclass(frozen=True)
class ValidationError(InventoryError):
    """An input violates a static field constraint.

    Attributes:
        field: Name of the offending field.
        rejected_value: The value as supplied by the caller.
        reason: Short human-readable description of the constraint.
    """

    code: ClassVar[str] = "VALIDATION_ERROR"

    field: str
    rejected_value: Any
    reason: str


@dataclass(frozen=True)
class ConflictError(InventoryError):
    """A uniqueness or optimistic-concurrency constraint was violated."""

    code: ClassVar[str] = "CONFLICT"

    field: str
    value: Any


@dataclass(frozen=True)
class InsufficientStockError(InventoryError):
    """A reservation asked for more units than are on hand."""

    code: ClassVar[str] = "INSUFFICIENT_STOCK"

    item_id: Any
    requested: int
    available: int


@dataclass(frozen=True)
class NotFoundError(InventoryError):
    code: ClassVar[str] = "NOT_FOUND"

    id: Any


@dataclass(frozen=True)
class MissingFieldError(InventoryError):
    """A required nested field is absent from flattener input.

    Attributes:
        path: Dotted/indexed location of the missing field, e.g.
            ``expeditions[0].crew[2].astronaut.agency``.
    """

    code: ClassVar[str] = "MISSING_FIELD"

    path: str
