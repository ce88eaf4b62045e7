"""Tests for the SQLAlchemy item store.

Each test gets a fresh SQLite database file (see the ``store`` fixture in
the root conftest). Row locking is a no-op on SQLite, so the concurrent
tests below rely on the versioned UPDATE alone to refuse stale writes.
"""

import threading
import uuid
from dataclasses import replace
from decimal import Decimal
from functools import partial

from shopping.errors import ConflictError, InsufficientStockError, NotFoundError
from shopping.inventory import engine
from shopping.inventory.domain import CatalogItem, StockStatus


def saved(store, fields, **overrides):
    out = store.save(engine.create(fields(**overrides)))
    assert isinstance(out, CatalogItem)
    return out


def test_save_and_find_round_trip(store, fields):
    item = saved(store, fields)
    found = store.find_by_id(item.id)
    assert found == item
    assert found.price == Decimal("19.99")
    assert found.created_at.tzinfo is not None


def test_find_unknown_id(store):
    missing = uuid.uuid4()
    assert store.find_by_id(missing) == NotFoundError(missing)


def test_exists_by_code(store, fields):
    saved(store, fields, code="ABC-000001")
    assert store.exists_by_code("ABC-000001") is True
    assert store.exists_by_code("ABC-000002") is False


def test_save_rejects_duplicate_code(store, fields):
    saved(store, fields, code="ABC-000001")
    out = store.save(engine.create(fields(code="ABC-000001")))
    assert out == ConflictError("code", "ABC-000001")
    assert store.count_all() == 1


def test_save_with_stale_version_conflicts(store, fields):
    item = saved(store, fields)
    first = store.save(engine.restock(item, 1))
    assert first.version == item.version + 1
    stale = store.save(engine.restock(item, 2))
    assert stale == ConflictError("version", item.version)
    assert store.find_by_id(item.id).quantity == item.quantity + 1


def test_mutate_applies_and_persists(store, fields):
    item = saved(store, fields, quantity=5)
    out = store.mutate(item.id, partial(engine.reserve, amount=3))
    assert out.quantity == 2
    assert out.version == item.version + 1
    assert store.find_by_id(item.id).quantity == 2


def test_mutate_error_writes_nothing(store, fields):
    item = saved(store, fields, quantity=5)
    out = store.mutate(item.id, partial(engine.reserve, amount=10))
    assert out == InsufficientStockError(item.id, 10, 5)
    assert store.find_by_id(item.id) == item


def test_mutate_unknown_id(store):
    missing = uuid.uuid4()
    assert store.mutate(missing, partial(engine.restock, amount=1)) == NotFoundError(missing)


def test_sequential_reservations_do_not_lose_updates(store, fields):
    item = saved(store, fields, quantity=10)
    for _ in range(4):
        store.mutate(item.id, partial(engine.reserve, amount=2))
    assert store.find_by_id(item.id).quantity == 2
    assert isinstance(store.mutate(item.id, partial(engine.reserve, amount=3)), InsufficientStockError)


def test_delete_and_count(store, fields):
    a = saved(store, fields, code="AAA-000001")
    saved(store, fields, code="AAA-000002")
    assert store.count_all() == 2
    assert store.delete(a.id) is None
    assert store.count_all() == 1
    assert store.delete(a.id) == NotFoundError(a.id)


def test_list_page_orders_by_creation(store, fields):
    codes = [f"PAG-00000{i}" for i in range(5)]
    for code in codes:
        saved(store, fields, code=code)
    first, total = store.list_page(1, 2)
    last, _ = store.list_page(3, 2)
    assert total == 5
    assert [i.code for i in first] == codes[:2]
    assert [i.code for i in last] == codes[4:]


def test_search_filters_combine(store, fields):
    saved(store, fields, name="Espresso Beans", code="SRC-000001", price=Decimal("19.99"), quantity=0)
    saved(store, fields, name="Espresso Cups", code="SRC-000002", price=Decimal("8.50"), quantity=12)
    saved(store, fields, name="Tea Leaves", code="SRC-000003", price=Decimal("6.00"), quantity=80)

    assert [i.code for i in store.search(name="espresso")] == ["SRC-000001", "SRC-000002"]
    assert [i.code for i in store.search(max_price=Decimal("8.50"))] == ["SRC-000002", "SRC-000003"]
    assert [i.code for i in store.search(name="ESPRESSO", min_price=Decimal("10"))] == ["SRC-000001"]
    assert [i.code for i in store.search(status=StockStatus.OUT_OF_STOCK)] == ["SRC-000001"]
    assert [i.code for i in store.search(status=StockStatus.IN_STOCK)] == ["SRC-000003"]
    assert store.search(name="100%") == []


def test_update_keeps_row_identity(store, fields):
    item = saved(store, fields)
    out = store.mutate(
        item.id, partial(engine.apply_update, fields=fields(name="Renamed"), code_in_use=store.exists_by_code)
    )
    assert out.name == "Renamed"
    assert out.created_at == item.created_at
    assert replace(out, name=item.name, updated_at=item.updated_at, version=item.version) == item


def test_write_from_stale_read_is_a_version_conflict(store, fields):
    item = saved(store, fields, quantity=10)

    def reserve_after_concurrent_restock(current):
        # Another writer commits between this read and this write.
        assert isinstance(store.mutate(item.id, partial(engine.restock, amount=5)), CatalogItem)
        return engine.reserve(current, 2)

    out = store.mutate(item.id, reserve_after_concurrent_restock)
    assert out == ConflictError("version", item.version)
    assert store.find_by_id(item.id).quantity == 15


def test_concurrent_reservations_never_lose_updates(store, fields):
    item = saved(store, fields, quantity=1000)
    workers = 10
    all_read = threading.Barrier(workers, timeout=10)
    results = []
    lock = threading.Lock()

    def reserve_one(current):
        all_read.wait()
        return engine.reserve(current, 1)

    def worker():
        out = store.mutate(item.id, reserve_one)
        with lock:
            results.append(out)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    applied = [r for r in results if isinstance(r, CatalogItem)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(applied) + len(conflicts) == workers
    assert all(c.field == "version" for c in conflicts)
    # Every worker read the same version, so exactly one write can land.
    assert len(applied) == 1
    assert store.find_by_id(item.id).quantity == 1000 - len(applied)


def test_retrying_conflicts_applies_every_reservation(store, fields):
    item = saved(store, fields, quantity=1000)
    workers = 8
    start = threading.Barrier(workers, timeout=10)

    def worker():
        start.wait()
        while isinstance(store.mutate(item.id, partial(engine.reserve, amount=1)), ConflictError):
            pass

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.find_by_id(item.id).quantity == 1000 - workers
