# tests/conftest.py
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine
from sqlalchemy.pool import StaticPool

import storefront.models  # noqa: F401
from storefront.db import Base
from storefront.storage import LocalObjectStore
from storefront.tables import TableStore

DEMO_TEXT = (
    "title: Demo Car\nprice: $10,000\nyear: 2020\nmileage: 1,000\nengine: 2.0L\n"
    "trans: Automatic\nfuel: Gasoline\nstatus: available\nstock_no: T-0001"
)


def memory_engine():
    return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


@pytest.fixture
def engine():
    eng = memory_engine()
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return TableStore(engine)


@pytest.fixture
def legacy_store():
    """Older deployment: cars keyed by car_id, no brand/model/specs_json, no ingest_tasks."""
    eng = memory_engine()
    md = MetaData()
    Table(
        "cars", md,
        Column("car_id", String(36), primary_key=True),
        Column("title", Text), Column("price", Integer), Column("year", Integer),
        Column("mileage", Integer), Column("engine", Text), Column("trans", Text),
        Column("fuel", Text), Column("status", Text), Column("stock_no", Text, unique=True),
    )
    Table(
        "car_images", md,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("car_id", String(36)), Column("image_url", Text), Column("sort_order", Integer),
    )
    md.create_all(eng)
    yield TableStore(eng)
    eng.dispose()


@pytest.fixture
def objects(tmp_path):
    return LocalObjectStore(tmp_path / "objects", "/storage", "car-images")


@pytest.fixture
def upload():
    from storefront.images import ImageUpload

    def make(name, content=None):
        return ImageUpload(name, content if content is not None else name.encode() * 4, None)
    return make


def add_car(store, stock_no="T-0001", **fields):
    payload = {
        "brand": "Demo", "model": "Car", "title": "Demo Car", "price": 10000, "year": 2020,
        "mileage": 1000, "engine": "2.0L", "trans": "Automatic", "fuel": "Gasoline",
        "status": "available", "stock_no": stock_no,
    }
    payload.update(fields)
    return store.insert("cars", payload)


def add_images(store, car_id, urls):
    store.insert_many("car_images", [
        {"car_id": car_id, "image_url": url, "sort_order": i} for i, url in enumerate(urls)
    ])


def stored_urls(store, car_id):
    rows = store.select("car_images", {"car_id": car_id}, order_by="sort_order")
    return [(r["image_url"], r["sort_order"]) for r in rows]


@pytest.fixture
def client(store, objects, tmp_path, monkeypatch):
    from fastapi.testclient import TestClient

    from storefront.db import get_store
    from storefront.main import app
    from storefront.storage import get_object_store

    monkeypatch.setenv("ADMIN_INGEST_TOKEN", "secret")
    monkeypatch.setenv("FAVORITES_FILE", str(tmp_path / "favorites.json"))
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_object_store] = lambda: objects
    yield TestClient(app)
    app.dependency_overrides.clear()
