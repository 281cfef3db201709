# storefront/coerce.py
"""Typed extraction from loosely shaped ``cars`` rows.

Deployments have used several column names for the same attribute
(``trans``/``transmission``, ``fuel``/``fuel_type``, ``id``/``car_id``/``uuid``),
so business code reads rows only through these helpers.
"""
from datetime import datetime
from typing import Any, Dict


def to_str(value: Any, fallback: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if value is None or isinstance(value, (dict, list, bool)):
        return fallback
    return str(value)


def to_int(value: Any, fallback: int = 0) -> int:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip():
        try:
            return int(float(value))
        except ValueError:
            return fallback
    return fallback


def to_specs(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k).lower(): "" if v is None else str(v) for k, v in value.items()}


def normalize_status(value: Any) -> str:
    raw = to_str(value).lower()
    if raw in ("hidden", "sold"):
        return raw
    if raw in ("available", "active", "published", ""):
        return "active"
    return "active"


def normalize_fuel(value: Any) -> str:
    raw = to_str(value).lower()
    if raw == "diesel":
        return "Diesel"
    if raw == "hybrid":
        return "Hybrid"
    if raw in ("ev", "electric"):
        return "EV"
    return "Petrol"


def normalize_transmission(value: Any) -> str:
    return "Manual" if to_str(value).lower() == "manual" else "Automatic"


def row_id(row: Dict[str, Any]) -> str:
    return to_str(row.get("id")) or to_str(row.get("car_id")) or to_str(row.get("uuid"))


def row_title(row: Dict[str, Any]) -> str:
    brand, model = to_str(row.get("brand")), to_str(row.get("model"))
    return (
        to_str(row.get("title"))
        or " ".join(p for p in (brand, model) if p)
        or to_str(row.get("name"))
        or "Untitled Car"
    )


def normalize_admin_car(row: Dict[str, Any]) -> Dict[str, Any]:
    """Row as shown in the admin editor: raw text fields, numbers coerced."""
    return {
        "id": row_id(row),
        "title": row_title(row),
        "status": to_str(row.get("status")) or "unknown",
        "stock_no": to_str(row.get("stock_no")) or "-",
        "created_at": to_str(row.get("created_at")) or to_str(row.get("inserted_at")),
        "brand": to_str(row.get("brand")),
        "model": to_str(row.get("model")),
        "price": to_int(row.get("price")),
        "year": to_int(row.get("year")),
        "mileage": to_int(row.get("mileage")),
        "engine": to_str(row.get("engine")),
        "trans": to_str(row.get("trans")) or to_str(row.get("transmission")),
        "fuel": to_str(row.get("fuel")) or to_str(row.get("fuel_type")),
        "specs_json": to_specs(row.get("specs_json")),
    }


def normalize_catalog_car(row: Dict[str, Any]) -> Dict[str, Any]:
    """Row as shown in the public catalog, with display vocabularies."""
    specs = to_specs(row.get("specs")) or to_specs(row.get("specs_json"))
    engine = to_str(row.get("engine")) or to_str(row.get("engine_size"))
    if engine and "engine" not in specs:
        specs["engine"] = engine
    return {
        "id": row_id(row) or "unknown-id",
        "title": row_title(row),
        "price": to_int(row.get("price")),
        "currency": "USD",
        "year": to_int(row.get("year")),
        "mileage": to_int(row.get("mileage"), to_int(row.get("mileage_km"))),
        "fuel": normalize_fuel(row.get("fuel") or row.get("fuel_type")),
        "transmission": normalize_transmission(row.get("trans") or row.get("transmission")),
        "status": normalize_status(row.get("status")),
        "stock_no": to_str(row.get("stock_no")),
        "location": to_str(row.get("location")) or to_str(row.get("country")) or "China",
        "images": [],
        "specs": specs,
    }
