# storefront/models.py
"""SQLAlchemy models describing the reference schema.

The service never writes through these classes; it talks to whatever tables
exist at runtime via ``storefront.tables``. They are used to create a fresh
schema (``Base.metadata.create_all``) and to document the expected columns.
"""
import uuid

from sqlalchemy import Column, Integer, Text, String, TIMESTAMP, JSON, ForeignKey, UniqueConstraint, func, Index
from sqlalchemy.dialects.postgresql import JSONB
from .db import Base


def _uuid():
    return str(uuid.uuid4())


class Car(Base):
    __tablename__ = "cars"
    id = Column(String(36), primary_key=True, default=_uuid)
    brand = Column(Text)
    model = Column(Text)
    title = Column(Text, nullable=False)
    price = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    mileage = Column(Integer, nullable=False)
    engine = Column(Text)
    trans = Column(Text)
    fuel = Column(Text)
    status = Column(Text, nullable=False, default="available")
    stock_no = Column(Text, nullable=False, unique=True, index=True)
    specs_json = Column(JSON().with_variant(JSONB, "postgresql"))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class CarImage(Base):
    __tablename__ = "car_images"
    __table_args__ = (UniqueConstraint("car_id", "sort_order", name="uq_car_images_car_sort"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(String(36), ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class IngestTask(Base):
    __tablename__ = "ingest_tasks"
    id = Column(String(36), primary_key=True, default=_uuid)
    status = Column(Text, nullable=False, default="running")
    retry_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text)
    car_id = Column(String(36))
    stock_no = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


Index("idx_cars_status", Car.status)
Index("idx_cars_price", Car.price)
