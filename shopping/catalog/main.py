"""Catalog service API built with FastAPI.

This module exposes CRUD, listing and search endpoints for products plus
the stock operations (reserve, restock, set stock). Handlers are kept
thin: they deserialize the request with Pydantic, call the pure
inventory engine, persist through ``ItemStore`` and map typed error
results to status codes via ``shopping.responses``.

Stock changes run inside ``ItemStore.mutate`` so each one reads, applies
and writes under a row lock.
"""

import uuid
from decimal import Decimal
from functools import lru_cache, partial
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Query, Response, status

from shopping import settings
from shopping.catalog.repo import ItemStore, init_db, make_engine, wait_for_db
from shopping.catalog.schemas import AmountIn, ProductCount, ProductIn, ProductOut, ProductPage, StockIn
from shopping.errors import ConflictError, InsufficientStockError, InventoryError
from shopping.inventory import engine
from shopping.inventory.domain import CatalogItem, StockStatus
from shopping.logs import get_logger, request_id_middleware
from shopping.responses import error_response, install_error_handlers

app = FastAPI(title="Catalog Service")

logger = get_logger("catalog")
app.middleware("http")(request_id_middleware(logger))
install_error_handlers(app, logger)


@lru_cache
def get_store() -> ItemStore:
    """Return the process-wide store bound to ``settings.DATABASE_URL``."""
    return ItemStore(make_engine())


@app.on_event("startup")
def _startup_db():
    store = get_store()
    wait_for_db(store.engine)
    init_db(store.engine)


def _out(item: CatalogItem) -> ProductOut:
    return ProductOut(
        id=item.id,
        name=item.name,
        price=item.price,
        description=item.description,
        quantity=item.quantity,
        code=item.code,
        contact=item.contact,
        status=item.status,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


@app.get("/health")
def health():
    """Liveness/health probe endpoint."""
    return {"ok": True}


@app.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(body: ProductIn, response: Response, store: ItemStore = Depends(get_store)):
    """Create a product.

    Returns:
        201 with the new product and a ``Location`` header; 400 on a field
        violation; 409 when the stock-keeping code is already taken.
    """
    item = engine.create(body.to_fields())
    if isinstance(item, InventoryError):
        return error_response(item)
    if store.exists_by_code(item.code):
        return error_response(ConflictError("code", item.code))
    saved = store.save(item)
    if isinstance(saved, InventoryError):
        return error_response(saved)
    logger.info("product created", extra={"item_id": str(saved.id), "code": saved.code})
    response.headers["Location"] = f"/products/{saved.id}"
    return _out(saved)


@app.get("/products", response_model=ProductPage)
def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    store: ItemStore = Depends(get_store),
):
    items, total = store.list_page(page, page_size)
    return ProductPage(count=total, page=page, page_size=page_size, results=[_out(i) for i in items])


@app.get("/products/search", response_model=list[ProductOut])
def search_products(
    name: Optional[str] = Query(None, max_length=100),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    stock_status: Optional[StockStatus] = Query(None, alias="status"),
    store: ItemStore = Depends(get_store),
):
    """Search by name substring, inclusive price range and stock status."""
    return [_out(i) for i in store.search(name, min_price, max_price, stock_status)]


@app.get("/products/count", response_model=ProductCount)
def count_products(store: ItemStore = Depends(get_store)):
    return ProductCount(count=store.count_all())


@app.get("/products/{item_id}", response_model=ProductOut)
def get_product(item_id: uuid.UUID, store: ItemStore = Depends(get_store)):
    item = store.find_by_id(item_id)
    if isinstance(item, InventoryError):
        return error_response(item)
    return _out(item)


@app.put("/products/{item_id}", response_model=ProductOut)
def update_product(item_id: uuid.UUID, body: ProductIn, store: ItemStore = Depends(get_store)):
    """Replace a product's attributes; 409 if the new code belongs to another item."""
    operation = partial(engine.apply_update, fields=body.to_fields(), code_in_use=store.exists_by_code)
    item = store.mutate(item_id, operation)
    if isinstance(item, InventoryError):
        return error_response(item)
    logger.info("product updated", extra={"item_id": str(item.id)})
    return _out(item)


@app.delete("/products/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(item_id: uuid.UUID, store: ItemStore = Depends(get_store)):
    error = store.delete(item_id)
    if error is not None:
        return error_response(error)
    logger.info("product deleted", extra={"item_id": str(item_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/products/{item_id}/reserve", response_model=ProductOut)
def reserve_stock(item_id: uuid.UUID, body: AmountIn, store: ItemStore = Depends(get_store)):
    """Reserve ``amount`` units.

    Returns:
        200 with the updated product; 422 with ``requested`` and
        ``available`` when stock is insufficient; 400 for a non-positive
        amount; 404 for an unknown product.
    """
    item = store.mutate(item_id, partial(engine.reserve, amount=body.amount))
    if isinstance(item, InventoryError):
        if isinstance(item, InsufficientStockError):
            logger.info(
                "reservation rejected",
                extra={"item_id": str(item_id), "requested": item.requested, "available": item.available},
            )
        return error_response(item)
    logger.info("stock reserved", extra={"item_id": str(item.id), "amount": body.amount, "quantity": item.quantity})
    return _out(item)


@app.post("/products/{item_id}/restock", response_model=ProductOut)
def restock(item_id: uuid.UUID, body: AmountIn, store: ItemStore = Depends(get_store)):
    item = store.mutate(item_id, partial(engine.restock, amount=body.amount))
    if isinstance(item, InventoryError):
        return error_response(item)
    logger.info("stock replenished", extra={"item_id": str(item.id), "amount": body.amount, "quantity": item.quantity})
    return _out(item)


@app.put("/products/{item_id}/stock", response_model=ProductOut)
def set_stock(item_id: uuid.UUID, body: StockIn, store: ItemStore = Depends(get_store)):
    item = store.mutate(item_id, partial(engine.set_stock, new_quantity=body.quantity))
    if isinstance(item, InventoryError):
        return error_response(item)
    logger.info("stock set", extra={"item_id": str(item.id), "quantity": item.quantity})
    return _out(item)


def run():
    """Console entry point: serve the catalog API with uvicorn."""
    uvicorn.run(app, host=settings.SERVICE_HOST, port=settings.CATALOG_PORT, log_level=settings.LOG_LEVEL)
