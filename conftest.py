# Shared fixtures: a throwaway SQLite-backed store wired into the catalog app,
# and a recorded-style Launch Library payload for the expeditions tests.
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from shopping.catalog.main import app as catalog_app, get_store
from shopping.catalog.repo import ItemStore, init_db, make_engine
from shopping.inventory.domain import ItemFields


@pytest.fixture
def store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'catalog.db'}")
    init_db(engine)
    yield ItemStore(engine)
    engine.dispose()


@pytest.fixture
def client(store):
    catalog_app.dependency_overrides[get_store] = lambda: store
    yield TestClient(catalog_app)
    catalog_app.dependency_overrides.clear()


@pytest.fixture
def fields():
    """Build valid ItemFields, overriding any attribute by keyword."""

    def make(**overrides):
        data = dict(
            name="Espresso Beans",
            price=Decimal("19.99"),
            description="Dark roast, 1kg",
            quantity=25,
            code="COF-000123",
            contact="buyer@example.com",
        )
        data.update(overrides)
        return ItemFields(**data)

    return make


def crew_member(name, role="Commander", agency="NASA"):
    return {
        "role": {"id": 1, "role": role, "priority": 0},
        "astronaut": {
            "id": abs(hash(name)) % 10000,
            "name": name,
            "agency": {"id": 44, "name": f"{agency} agency", "abbrev": agency},
            "nationality": [{"name": "United States", "nationality_name": "American"}],
            "time_in_space": "P180DT2H",
            "bio": "",
        },
    }


def expedition(station, crew, exp_id=1):
    return {
        "id": exp_id,
        "name": f"Expedition {exp_id}",
        "start": "2024-09-11T16:32:00Z",
        "end": None,
        "spacestation": {"id": 4, "name": station, "orbit": "Low Earth Orbit"},
        "crew": crew,
    }


@pytest.fixture
def expedition_payload():
    return {
        "count": 2,
        "next": None,
        "results": [
            expedition(
                "International Space Station",
                [
                    crew_member("Sunita Williams"),
                    crew_member("Alexey Ovchinin", role="Flight Engineer", agency="RFSA"),
                ],
                exp_id=72,
            ),
            expedition(
                "Tiangong",
                [crew_member("Cai Xuzhe", agency="CNSA")],
                exp_id=33,
            ),
        ],
    }
