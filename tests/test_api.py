# tests/test_api.py
import json

from storefront.db import get_store
from storefront.main import app
from conftest import DEMO_TEXT, add_car, add_images, stored_urls

ADMIN = {"x-admin-token": "secret"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_admin_requires_token(client):
    resp = client.get("/api/admin/cars")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"
    assert resp.json()["hint"]
    assert client.get("/api/admin/cars", headers={"x-admin-token": "wrong"}).status_code == 401


def test_missing_server_secret_is_misconfiguration(client, monkeypatch):
    monkeypatch.delenv("ADMIN_INGEST_TOKEN")
    resp = client.get("/api/admin/cars", headers=ADMIN)
    assert resp.status_code == 500
    assert "ADMIN_INGEST_TOKEN" in resp.json()["error"]


def test_session_cookie_login_and_logout(client):
    assert client.post("/api/admin/session", json={"token": "bad"}).status_code == 401
    resp = client.post("/api/admin/session", json={"token": "secret"})
    assert resp.json() == {"ok": True}
    assert client.get("/api/admin/cars").status_code == 200
    client.delete("/api/admin/session")
    assert client.get("/api/admin/cars").status_code == 401


def test_ingest_endpoint(client, store):
    resp = client.post(
        "/api/ingest-car",
        headers=ADMIN,
        data={"car_text": DEMO_TEXT},
        files=[("images", ("cover.jpg", b"jpeg-bytes", "image/jpeg")), ("images", ("notes.txt", b"x", "text/plain"))],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["done"] is True
    assert body["inserted_car_images"] == 1
    assert body["uploaded_image_files"] == 1
    assert body["task_id"]

    again = client.post("/api/ingest-car", headers=ADMIN, data={"car_text": DEMO_TEXT}).json()
    assert again["car_id"] == body["car_id"]
    assert len(store.select("cars")) == 1


def test_ingest_validation_error(client, store):
    resp = client.post("/api/ingest-car", headers=ADMIN, data={"car_text": "title: Half a car"})
    assert resp.status_code == 400
    assert "Missing required field" in resp.json()["error"]
    assert "required fields" in resp.json()["hint"]
    assert store.select("ingest_tasks") == []


def test_admin_cars_listing_and_edit(client, store):
    car = add_car(store)
    cars = client.get("/api/admin/cars", headers=ADMIN).json()["cars"]
    assert [c["stock_no"] for c in cars] == ["T-0001"]

    resp = client.patch("/api/admin/cars", headers=ADMIN, json={
        "car_id": car["id"], "updates": {"price": "11500", "specs_json": {"Drive": "FWD"}},
    })
    body = resp.json()
    assert body["car"]["price"] == 11500
    assert body["specs_saved"] is True

    hidden = client.patch("/api/admin/cars", headers=ADMIN, json={"car_id": car["id"], "action": "down_shelf"})
    assert hidden.json()["car"]["status"] == "hidden"

    bad = client.patch("/api/admin/cars", headers=ADMIN, json={"car_id": car["id"], "action": "explode"})
    assert bad.status_code == 400


def test_edit_reports_unsaved_specs(client, legacy_store):
    app.dependency_overrides[get_store] = lambda: legacy_store
    car = legacy_store.insert("cars", {
        "title": "Old Car", "price": 1, "year": 2001, "mileage": 1, "engine": "1.6L",
        "trans": "Manual", "fuel": "Petrol", "status": "available", "stock_no": "OLD-001",
    })
    resp = client.patch("/api/admin/cars", headers=ADMIN, json={
        "car_id": car["car_id"], "updates": {"price": 2500, "specs_json": {"Seats": "5"}},
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["car"]["price"] == 2500
    assert body["specs_saved"] is False
    assert "specs_json" in body["warning"]


def test_car_images_endpoints(client, store):
    car = add_car(store)
    add_images(store, car["id"], ["/a.jpg", "/b.jpg"])
    listed = client.get("/api/admin/car-images", params={"car_id": car["id"]}, headers=ADMIN).json()
    assert listed["image_count"] == 2

    resp = client.post(
        "/api/admin/car-images",
        headers=ADMIN,
        data={"car_id": car["id"], "ordered_items": json.dumps(["existing:/b.jpg", "new:n1", "existing:/a.jpg"])},
        files=[("file_n1", ("new.webp", b"webp-bytes", "image/webp"))],
    )
    assert resp.status_code == 200
    assert resp.json()["image_count"] == 3
    rows = stored_urls(store, car["id"])
    assert rows[0] == ("/b.jpg", 0)
    assert rows[1][0].endswith("-new.webp")
    assert rows[2] == ("/a.jpg", 2)

    missing = client.post("/api/admin/car-images", headers=ADMIN, data={"car_id": car["id"], "ordered_items": "[]"})
    assert missing.status_code == 400


def test_public_catalog(client, store):
    car = add_car(store)
    add_car(store, stock_no="T-0002", status="hidden")
    add_images(store, car["id"], ["/cover.jpg"])
    cars = client.get("/api/cars").json()
    assert [c["id"] for c in cars] == [car["id"]]
    assert cars[0]["images"] == ["/cover.jpg"]
    assert cars[0]["fuel"] == "Petrol"
    assert client.get("/api/cars", params={"min_price": 20000}).json() == []

    detail = client.get(f"/api/cars/{car['id']}").json()
    assert detail["title"] == "Demo Car"
    assert client.get("/api/cars/missing").status_code == 404


def test_favorites_endpoints(client):
    assert client.get("/api/favorites").json() == {"ids": []}
    assert client.post("/api/favorites/car-1").json()["favorite"] is True
    assert client.post("/api/favorites/car-2").json()["ids"] == ["car-1", "car-2"]
    assert client.post("/api/favorites/car-1").json()["favorite"] is False
    assert client.put("/api/favorites", json={"ids": ["x", "x", "y"]}).json() == {"ids": ["x", "y"]}


def test_delete_favorite(client):
    client.put("/api/favorites", json={"ids": ["car-1", "car-2"]})
    resp = client.delete("/api/favorites/car-1")
    assert resp.json() == {"car_id": "car-1", "favorite": False, "ids": ["car-2"]}
    assert client.delete("/api/favorites/car-9").json()["ids"] == ["car-2"]


def test_catalog_detail_on_table_keyed_by_car_id(client, legacy_store):
    app.dependency_overrides[get_store] = lambda: legacy_store
    row = legacy_store.insert("cars", {"title": "Old Car", "status": "available", "stock_no": "OLD-001"})
    listed = client.get("/api/cars").json()
    assert client.get(f"/api/cars/{listed[0]['id']}").json()["id"] == row["car_id"]


def test_car_images_for_unknown_car(client):
    resp = client.post(
        "/api/admin/car-images",
        headers=ADMIN,
        data={"car_id": "../../escaped", "ordered_items": json.dumps(["new:x"])},
        files=[("file_x", ("x.jpg", b"jpeg", "image/jpeg"))],
    )
    assert resp.status_code == 404
