# storefront/schemas.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class CarOut(BaseModel):
    id: str
    title: str
    price: int
    currency: str = "USD"
    year: int
    mileage: int
    fuel: str
    transmission: str
    status: str
    stock_no: Optional[str] = None
    location: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    specs: Dict[str, str] = Field(default_factory=dict)


class AdminCarOut(BaseModel):
    id: str
    title: str
    status: str
    stock_no: str
    created_at: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    price: int = 0
    year: int = 0
    mileage: int = 0
    engine: Optional[str] = None
    trans: Optional[str] = None
    fuel: Optional[str] = None
    specs_json: Dict[str, str] = Field(default_factory=dict)


class CarFilter(BaseModel):
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    min_year: Optional[int] = None
    max_year: Optional[int] = None
    fuel: Optional[str] = None


class CarPatch(BaseModel):
    car_id: str = ""
    action: Optional[str] = "update"
    updates: Optional[Dict[str, Any]] = None


class SessionRequest(BaseModel):
    token: Optional[str] = None


class FavoritesUpdate(BaseModel):
    ids: List[str] = Field(default_factory=list)


class IngestResponse(BaseModel):
    car_id: str
    stock_no: str
    inserted_car_images: int
    uploaded_image_files: int
    task_id: Optional[str] = None
    logging_warning: Optional[str] = None
    done: bool = True


class CarImageOut(BaseModel):
    image_url: str
    sort_order: int


class AdminCarList(BaseModel):
    cars: List[AdminCarOut] = Field(default_factory=list)


class CarImageList(BaseModel):
    images: List[CarImageOut] = Field(default_factory=list)
    image_count: int = 0
