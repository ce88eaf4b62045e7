"""API tests for product CRUD, listing and search.

The catalog app runs against a temporary SQLite store injected through
``app.dependency_overrides`` (see the ``client`` fixture).
"""

import uuid
from datetime import datetime

import pytest
from pydantic import TypeAdapter

PRODUCTS_URL = "/products"
WHEN = TypeAdapter(datetime)


def payload(**overrides):
    body = {
        "name": "Espresso Beans",
        "price": "19.99",
        "description": "Dark roast, 1kg",
        "quantity": 25,
        "code": "COF-000123",
        "contact": "buyer@example.com",
    }
    body.update(overrides)
    return body


def create(client, **overrides):
    r = client.post(PRODUCTS_URL, json=payload(**overrides))
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_create_returns_201_with_location(client):
    r = client.post(PRODUCTS_URL, json=payload())
    assert r.status_code == 201
    body = r.json()
    assert r.headers["Location"] == f"/products/{body['id']}"
    assert body["price"] == "19.99"
    assert body["status"] == "MEDIUM_STOCK"
    assert body["created_at"] == body["updated_at"]


def test_create_accepts_numeric_price(client):
    body = create(client, price=5)
    assert body["price"] == "5.00"


def test_response_echoes_request_id(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


@pytest.mark.parametrize(
    "override, field",
    [
        ({"name": ""}, "name"),
        ({"price": "0.00"}, "price"),
        ({"price": "10.999"}, "price"),
        ({"quantity": -3}, "quantity"),
        ({"code": "COF123"}, "code"),
        ({"contact": "nobody"}, "contact"),
    ],
)
def test_create_validation_error_is_400(client, override, field):
    r = client.post(PRODUCTS_URL, json=payload(**override))
    assert r.status_code == 400
    body = r.json()
    assert body["detail"] == "VALIDATION_ERROR"
    assert body["field"] == field


def test_malformed_body_is_400(client):
    r = client.post(PRODUCTS_URL, json={"name": "No price"})
    assert r.status_code == 400
    assert r.json()["detail"] == "MALFORMED_REQUEST"


def test_duplicate_code_is_409(client):
    create(client)
    r = client.post(PRODUCTS_URL, json=payload(name="Other"))
    assert r.status_code == 409
    assert r.json() == {"detail": "CONFLICT", "field": "code", "value": "COF-000123"}


def test_get_and_404(client):
    created = create(client)
    r = client.get(f"{PRODUCTS_URL}/{created['id']}")
    assert r.status_code == 200
    assert r.json() == created

    missing = uuid.uuid4()
    r = client.get(f"{PRODUCTS_URL}/{missing}")
    assert r.status_code == 404
    assert r.json() == {"detail": "NOT_FOUND", "id": str(missing)}


def test_bad_uuid_is_400(client):
    assert client.get(f"{PRODUCTS_URL}/not-a-uuid").status_code == 400


def test_update_replaces_fields(client):
    created = create(client)
    r = client.put(f"{PRODUCTS_URL}/{created['id']}", json=payload(name="Decaf Beans", quantity=3))
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Decaf Beans"
    assert body["status"] == "LOW_STOCK"
    assert body["created_at"] == created["created_at"]
    assert WHEN.validate_python(body["updated_at"]) >= WHEN.validate_python(created["updated_at"])


def test_update_to_taken_code_is_409_and_leaves_item_alone(client):
    create(client, code="AAA-000001")
    other = create(client, code="BBB-000002")
    r = client.put(f"{PRODUCTS_URL}/{other['id']}", json=payload(code="AAA-000001"))
    assert r.status_code == 409
    assert client.get(f"{PRODUCTS_URL}/{other['id']}").json() == other


def test_update_unknown_is_404(client):
    assert client.put(f"{PRODUCTS_URL}/{uuid.uuid4()}", json=payload()).status_code == 404


def test_delete(client):
    created = create(client)
    r = client.delete(f"{PRODUCTS_URL}/{created['id']}")
    assert r.status_code == 204
    assert r.content == b""
    assert client.get(f"{PRODUCTS_URL}/{created['id']}").status_code == 404
    assert client.delete(f"{PRODUCTS_URL}/{created['id']}").status_code == 404


def test_list_is_paginated(client):
    for i in range(3):
        create(client, code=f"LST-00000{i}")
    r = client.get(PRODUCTS_URL, params={"page": 2, "page_size": 2})
    assert r.status_code == 200
    body = r.json()
    assert (body["count"], body["page"], body["page_size"]) == (3, 2, 2)
    assert [p["code"] for p in body["results"]] == ["LST-000002"]


def test_list_rejects_bad_page(client):
    assert client.get(PRODUCTS_URL, params={"page": 0}).status_code == 400


def test_count(client):
    assert client.get(f"{PRODUCTS_URL}/count").json() == {"count": 0}
    create(client)
    assert client.get(f"{PRODUCTS_URL}/count").json() == {"count": 1}


def test_search(client):
    create(client, name="Espresso Beans", code="SRC-000001", quantity=0)
    create(client, name="Green Tea", code="SRC-000002", quantity=60, price="4.50")
    r = client.get(f"{PRODUCTS_URL}/search", params={"name": "tea"})
    assert [p["code"] for p in r.json()] == ["SRC-000002"]
    r = client.get(f"{PRODUCTS_URL}/search", params={"status": "OUT_OF_STOCK"})
    assert [p["code"] for p in r.json()] == ["SRC-000001"]
    r = client.get(f"{PRODUCTS_URL}/search", params={"min_price": "5", "max_price": "20"})
    assert [p["code"] for p in r.json()] == ["SRC-000001"]
    assert client.get(f"{PRODUCTS_URL}/search", params={"status": "PLENTY"}).status_code == 400
