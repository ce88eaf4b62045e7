"""SQLAlchemy repository for catalog items.

This module persists ``CatalogItem`` values in a single ``products``
table and implements the ``ItemStore`` port. Stock mutations go through
``ItemStore.mutate``, which locks the row with ``SELECT ... FOR UPDATE``,
applies a pure engine operation and writes the result in the same
transaction. The ``version`` column is the mapper's version counter, so
every UPDATE also carries ``WHERE version = <version read>``. Where the
row lock is not honoured (SQLite), a write from a stale read therefore
matches no row and is reported as ``ConflictError(field="version")``
instead of silently overwriting a concurrent change.

The connection URL comes from ``settings.DATABASE_URL`` (PostgreSQL via
psycopg by default).
"""

import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import DateTime, Engine, Integer, Numeric, String, Uuid, create_engine, func, select, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.orm.exc import StaleDataError

from shopping import settings
from shopping.errors import ConflictError, InventoryError, NotFoundError
from shopping.inventory.domain import STATUS_BANDS, CatalogItem, ItemOperation, ItemResult, StockStatus


class Base(DeclarativeBase):
    pass


class Product(Base):
    """SQLAlchemy model for one catalog item.

    Attributes:
        id: UUID primary key exposed to clients.
        code: Stock-keeping code, unique across the table.
        quantity: Quantity on hand (non-null, never negative).
        version: Bumped by SQLAlchemy on every UPDATE and checked in its
            WHERE clause.
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    contact: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __mapper_args__ = {"version_id_col": version}


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _to_domain(row: Product) -> CatalogItem:
    return CatalogItem(
        id=row.id,
        name=row.name,
        price=Decimal(row.price).quantize(Decimal("0.01")),
        description=row.description,
        quantity=row.quantity,
        code=row.code,
        contact=row.contact,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
        version=row.version,
    )


def _copy_into(row: Product, item: CatalogItem) -> None:
    row.name = item.name
    row.price = item.price
    row.description = item.description
    row.quantity = item.quantity
    row.code = item.code
    row.contact = item.contact
    row.created_at = item.created_at
    row.updated_at = item.updated_at


def make_engine(url: Optional[str] = None) -> Engine:
    return create_engine(url or settings.DATABASE_URL, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def wait_for_db(engine: Engine, timeout: Optional[float] = None) -> None:
    """Block until the database accepts connections or ``timeout`` elapses.

    Raises:
        OperationalError: The last connection error once the deadline passes.
    """
    deadline = time.time() + (settings.DB_STARTUP_TIMEOUT if timeout is None else timeout)
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            return
        except OperationalError:
            if time.time() > deadline:
                raise
            time.sleep(1)


class ItemStore:
    """Repository implementing the ``ItemStore`` port on SQLAlchemy.

    Every method opens its own short-lived session; no ORM objects leak
    out, only ``CatalogItem`` values.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def session(self):
        """Yield a session bound to this store's engine, closed on exit."""
        with Session(self.engine) as s:
            yield s

    def find_by_id(self, item_id: uuid.UUID) -> Union[CatalogItem, NotFoundError]:
        with self.session() as s:
            row = s.get(Product, item_id)
            return _to_domain(row) if row else NotFoundError(item_id)

    def exists_by_code(self, code: str) -> bool:
        with self.session() as s:
            return s.scalar(select(Product.id).where(Product.code == code).limit(1)) is not None

    def save(self, item: CatalogItem) -> Union[CatalogItem, ConflictError]:
        """Insert a new item or overwrite an existing one.

        Overwrites are rejected with ``ConflictError(field="version")`` when
        the row changed after the caller read ``item``, whether that is seen
        on read or only when the versioned UPDATE matches no row. A
        concurrent insert of the same code surfaces as
        ``ConflictError(field="code")``.

        Returns:
            The persisted item carrying its new version.
        """
        with self.session() as s:
            row = s.get(Product, item.id, with_for_update=True)
            if row is None:
                row = Product(id=item.id)
                s.add(row)
            elif row.version != item.version:
                s.rollback()
                return ConflictError("version", item.version)
            _copy_into(row, item)
            try:
                s.commit()
            except IntegrityError:
                s.rollback()
                return ConflictError("code", item.code)
            except StaleDataError:
                s.rollback()
                return ConflictError("version", item.version)
            return _to_domain(row)

    def mutate(self, item_id: uuid.UUID, operation: ItemOperation) -> ItemResult:
        """Apply ``operation`` to the current item while holding its row lock.

        Args:
            item_id: Item to change.
            operation: Pure engine function mapping the current item to the
                next one or to an error value.

        Returns:
            The persisted next item; NotFoundError if the item is gone; the
            operation's own error (nothing is written in that case);
            ConflictError on ``code`` when the write violates the code
            uniqueness, or on ``version`` when another writer changed the
            row in between. The caller may retry a version conflict.
        """
        with self.session() as s:
            row = s.execute(select(Product).where(Product.id == item_id).with_for_update()).scalar_one_or_none()
            if row is None:
                return NotFoundError(item_id)
            current = _to_domain(row)
            result = operation(current)
            if isinstance(result, InventoryError):
                s.rollback()
                return result
            _copy_into(row, result)
            try:
                s.commit()
            except IntegrityError:
                s.rollback()
                return ConflictError("code", result.code)
            except StaleDataError:
                s.rollback()
                return ConflictError("version", current.version)
            return _to_domain(row)

    def delete(self, item_id: uuid.UUID) -> Optional[NotFoundError]:
        with self.session() as s:
            row = s.get(Product, item_id)
            if row is None:
                return NotFoundError(item_id)
            s.delete(row)
            s.commit()
            return None

    def count_all(self) -> int:
        with self.session() as s:
            return s.scalar(select(func.count()).select_from(Product)) or 0

    def list_page(self, page: int, page_size: int) -> tuple[list[CatalogItem], int]:
        """Return one page of items, oldest first, and the total count.

        ``page`` is 1-based.
        """
        with self.session() as s:
            total = s.scalar(select(func.count()).select_from(Product)) or 0
            rows = s.scalars(
                select(Product)
                .order_by(Product.created_at, Product.id)
                .offset((page - 1) * page_size)
                .limit(page_size)
            ).all()
            return [_to_domain(r) for r in rows], total

    def search(
        self,
        name: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        status: Optional[StockStatus] = None,
    ) -> list[CatalogItem]:
        """Find items matching every given filter.

        Args:
            name: Case-insensitive substring of the item name.
            min_price: Inclusive lower price bound.
            max_price: Inclusive upper price bound.
            status: Only items whose quantity falls in this stock band.
        """
        stmt = select(Product)
        if name:
            stmt = stmt.where(func.lower(Product.name).contains(name.lower(), autoescape=True))
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)
        if status is not None:
            low, high = STATUS_BANDS[status]
            stmt = stmt.where(Product.quantity >= low)
            if high is not None:
                stmt = stmt.where(Product.quantity <= high)
        with self.session() as s:
            rows = s.scalars(stmt.order_by(Product.name, Product.id)).all()
            return [_to_domain(r) for r in rows]
