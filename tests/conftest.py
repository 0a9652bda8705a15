import json

import pytest

from catalog_search.models import Product, Tag
from fakes import FakeElasticsearch


SCENARIO_PRODUCTS = [
    {"id": "p1", "name": "Red Mug", "description": "A ceramic mug", "price": 1299, "tags": ["kitchen"]},
    {"id": "p2", "name": "Blue Mug", "description": "A ceramic mug", "price": 1299, "tags": ["kitchen"]},
    {"id": "p3", "name": "Red Shirt", "description": "Cotton tee", "price": 2500, "tags": ["apparel"]},
]


@pytest.fixture
def es():
    return FakeElasticsearch()


@pytest.fixture
def products():
    return [
        Product(id=p["id"], name=p["name"], description=p["description"], price=p["price"],
                tags=tuple(Tag(name=t) for t in p["tags"]))
        for p in SCENARIO_PRODUCTS
    ]


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps(SCENARIO_PRODUCTS), encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep a developer's .env / shell from leaking into settings under test."""
    for name in (
        "ES_URL", "ES_INDEX", "ES_API_KEY", "ES_USERNAME", "ES_PASSWORD", "ES_VERIFY_CERTS",
        "ES_REQUEST_TIMEOUT", "ES_MAX_RETRIES", "CATALOG_DATA_PATH", "BULK_CHUNK_SIZE",
        "SEARCH_SIZE", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
