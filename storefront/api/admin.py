# storefront/api/admin.py
"""Admin endpoints: session, ingestion, car edits and photo management.

Every route except the session login requires the shared admin token.
"""
import json
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as FormFile

from .. import config, crud, schemas, services
from ..auth import ADMIN_COOKIE_NAME, SESSION_MAX_AGE, check_token, require_admin
from ..catalog import list_admin_cars
from ..coerce import normalize_admin_car
from ..db import get_store
from ..errors import ValidationError
from ..images import ImageUpload, read_car_images, reconcile_car_images
from ..storage import get_object_store
from ..tables import TableStore
from ..utils import logger

router = APIRouter()
admin = [Depends(require_admin)]


@router.post("/api/admin/session")
def login(payload: schemas.SessionRequest, response: Response):
    token = (payload.token or "").strip()
    check_token(token)
    response.set_cookie(
        ADMIN_COOKIE_NAME, token, max_age=SESSION_MAX_AGE, path="/",
        httponly=True, samesite="lax", secure=config.cookie_secure(),
    )
    return {"ok": True}


@router.delete("/api/admin/session")
def logout(response: Response):
    response.set_cookie(
        ADMIN_COOKIE_NAME, "", max_age=0, path="/",
        httponly=True, samesite="lax", secure=config.cookie_secure(),
    )
    return {"ok": True}


@router.post("/api/ingest-car", dependencies=admin, response_model=schemas.IngestResponse)
def ingest_car(
    car_text: str = Form(""),
    images: Optional[List[UploadFile]] = File(None),
    store: TableStore = Depends(get_store),
    objects=Depends(get_object_store),
):
    files = [ImageUpload(f.filename or "", f.file.read(), f.content_type) for f in images or []]
    result = services.ingest_car(store, objects, car_text, files)
    return result.as_response()


@router.get("/api/admin/cars", dependencies=admin, response_model=schemas.AdminCarList)
def admin_cars(store: TableStore = Depends(get_store)):
    return {"cars": list_admin_cars(store)}


@router.patch("/api/admin/cars", dependencies=admin)
def edit_car(payload: schemas.CarPatch, store: TableStore = Depends(get_store)):
    car_id = payload.car_id.strip()
    if not car_id:
        raise ValidationError("car_id is required", hint="Provide a valid car_id from admin cars list.")
    action = (payload.action or "update").strip().lower()
    if action not in ("update", "down_shelf"):
        raise ValidationError("Invalid action", hint="Use action=update or action=down_shelf.")

    if action == "down_shelf":
        row = crud.hide_car(store, car_id)
        return {"car": normalize_admin_car(row), "action": action, "done": True}

    updates = crud.sanitize_car_updates(payload.updates or {})
    if not updates:
        raise ValidationError(
            "No editable fields provided", hint="Provide updates with at least one editable field."
        )
    result = crud.update_car(store, car_id, updates)
    body = {
        "car": normalize_admin_car(result.row),
        "action": action,
        "done": True,
        "specs_saved": "specs_json" in updates and not result.specs_dropped,
    }
    if result.specs_dropped:
        body["warning"] = "Parameter table was not saved because cars.specs_json column is missing"
        body["hint"] = "Add a specs_json jsonb column to cars, then retry the edit."
    return body


@router.get("/api/admin/car-images", dependencies=admin, response_model=schemas.CarImageList)
def car_images(car_id: str = Query(""), store: TableStore = Depends(get_store)):
    car_id = car_id.strip()
    if not car_id:
        raise ValidationError("car_id is required", hint="Pass ?car_id=<id> in request query.")
    rows = read_car_images(store, car_id)
    return {"images": rows, "image_count": len(rows)}


def parse_ordered_items(raw) -> List[str]:
    if not isinstance(raw, str) or not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        return []
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, str)]


@router.post("/api/admin/car-images", dependencies=admin)
async def update_car_images(request: Request, store: TableStore = Depends(get_store),
                            objects=Depends(get_object_store)):
    form = await request.form()
    car_id = str(form.get("car_id") or "").strip()
    if not car_id:
        raise ValidationError("car_id is required", hint="Provide car_id in formData.")
    ordered_items = parse_ordered_items(form.get("ordered_items"))
    if not ordered_items:
        raise ValidationError(
            "ordered_items is required", hint="Provide ordered_items JSON array in formData."
        )

    named, fallback = {}, []
    for key, value in form.multi_items():
        if not isinstance(value, FormFile):
            continue
        upload = ImageUpload(value.filename or "", await value.read(), value.content_type)
        if key.startswith("file_"):
            named[key[len("file_"):]] = upload
        elif key == "images":
            fallback.append(upload)

    logger.info("Reconciling %d image descriptors for car %s", len(ordered_items), car_id)
    result = await run_in_threadpool(
        reconcile_car_images, store, objects, car_id, ordered_items, named, fallback
    )
    return {
        "done": True,
        "car_id": car_id,
        "image_count": result.image_count,
        "uploaded": result.uploaded,
        "changed": result.changed,
    }
