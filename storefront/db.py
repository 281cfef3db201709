# storefront/db.py
"""Database engine and table-store dependency.

Centralized SQLAlchemy engine creation plus the FastAPI dependency that hands
route handlers a ``TableStore`` bound to that engine.
"""
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from . import config
from .tables import TableStore

DATABASE_URL = config.database_url()


def make_engine(url=DATABASE_URL):
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    # tuned pool settings for cloud DB
    return create_engine(
        url,
        pool_size=int(os.getenv("DB_POOL_SIZE", 5)),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", 10)),
        pool_pre_ping=True
    )


engine = make_engine()
Base = declarative_base()


def get_store():
    return TableStore(engine)
