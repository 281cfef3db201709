# storefront/api/routes.py
"""Public storefront endpoints: catalog, car detail, favorites."""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from .. import catalog, schemas
from ..db import get_store
from ..favorites import FavoritesStore, get_favorites
from ..tables import TableStore

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/api/cars", response_model=List[schemas.CarOut])
def cars(
    min_price: Optional[int] = Query(None),
    max_price: Optional[int] = Query(None),
    min_year: Optional[int] = Query(None),
    max_year: Optional[int] = Query(None),
    fuel: Optional[str] = Query(None),
    store: TableStore = Depends(get_store)
):
    filters = schemas.CarFilter(
        min_price=min_price, max_price=max_price, min_year=min_year, max_year=max_year, fuel=fuel
    )
    return catalog.list_active_cars(store, filters.model_dump())


@router.get("/api/cars/{car_id}", response_model=schemas.CarOut)
def car_detail(car_id: str, store: TableStore = Depends(get_store)):
    return catalog.get_car(store, car_id)


@router.get("/api/favorites")
def favorites(store: FavoritesStore = Depends(get_favorites)):
    return {"ids": store.get_ids()}


@router.put("/api/favorites")
def replace_favorites(payload: schemas.FavoritesUpdate, store: FavoritesStore = Depends(get_favorites)):
    return {"ids": store.set_ids(payload.ids)}


@router.post("/api/favorites/{car_id}")
def toggle_favorite(car_id: str, store: FavoritesStore = Depends(get_favorites)):
    favorite = store.toggle(car_id)
    return {"car_id": car_id, "favorite": favorite, "ids": store.get_ids()}


@router.delete("/api/favorites/{car_id}")
def remove_favorite(car_id: str, store: FavoritesStore = Depends(get_favorites)):
    store.remove(car_id)
    return {"car_id": car_id, "favorite": False, "ids": store.get_ids()}
