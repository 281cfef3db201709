# storefront/catalog.py
"""Read side: public catalog and admin listing."""
from typing import Any, Dict, List, Optional

from . import config
from .coerce import normalize_admin_car, normalize_catalog_car, to_str
from .crud import find_car
from .errors import TransientBackendError, UpstreamError
from .tables import TableStore
from .utils import logger, retry

PUBLIC_STATUSES = ("active", "published", "available")
PLACEHOLDER_IMAGE = "/placeholder-car.jpg"


@retry(TransientBackendError, tries=3, delay=0.25, backoff=2.8)
def _read(store: TableStore, table: str, **kwargs):
    return store.select(table, **kwargs)


@retry(TransientBackendError, tries=3, delay=0.25, backoff=2.8)
def _find(store: TableStore, table: str, car_id: str):
    return find_car(store, car_id, table)


def load_images_by_car_id(store: TableStore, car_ids: List[str]) -> Dict[str, List[str]]:
    images: Dict[str, List[str]] = {}
    try:
        rows = store.select_in(config.car_images_table(), "car_id", car_ids, order_by="sort_order")
    except UpstreamError as e:
        logger.warning("Could not load car images, using placeholders: %s", e)
        return images
    for row in rows:
        car_id, url = to_str(row.get("car_id")), to_str(row.get("image_url"))
        if car_id and url:
            images.setdefault(car_id, []).append(url)
    return images


def _with_images(store: TableStore, cars: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    images = load_images_by_car_id(store, [c["id"] for c in cars])
    for car in cars:
        car["images"] = images.get(car["id"]) or [PLACEHOLDER_IMAGE]
    return cars


def _matches(car: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    if filters.get("min_price") is not None and car["price"] < filters["min_price"]:
        return False
    if filters.get("max_price") is not None and car["price"] > filters["max_price"]:
        return False
    if filters.get("min_year") is not None and car["year"] < filters["min_year"]:
        return False
    if filters.get("max_year") is not None and car["year"] > filters["max_year"]:
        return False
    if filters.get("fuel") and car["fuel"].lower() != filters["fuel"].lower():
        return False
    return True


def list_active_cars(store: TableStore, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    rows = _read(store, config.cars_table())
    cars = [normalize_catalog_car(r) for r in rows if to_str(r.get("status")).lower() in PUBLIC_STATUSES]
    cars = [c for c in cars if _matches(c, filters or {})]
    return _with_images(store, cars)


def get_car(store: TableStore, car_id: str) -> Dict[str, Any]:
    row = _find(store, config.cars_table(), car_id)
    return _with_images(store, [normalize_catalog_car(row)])[0]


def list_admin_cars(store: TableStore, limit: int = 200) -> List[Dict[str, Any]]:
    rows = _read(store, config.cars_table(), limit=limit)
    cars = [normalize_admin_car(r) for r in rows]
    cars = [c for c in cars if c["id"]]
    # ISO timestamps sort lexically; rows without one go last
    dated = sorted((c for c in cars if c["created_at"]), key=lambda c: c["created_at"], reverse=True)
    return dated + [c for c in cars if not c["created_at"]]
