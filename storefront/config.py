# storefront/config.py
"""Environment-driven settings.

Values are read on every call rather than cached at import so a running
process (and the test-suite) picks up changes to the environment.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def database_url() -> str:
    url = os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL") or "sqlite:///./storefront.db"
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def admin_token() -> str:
    return os.getenv("ADMIN_INGEST_TOKEN", "").strip()


def cars_table() -> str:
    return os.getenv("CARS_TABLE", "cars")


def car_images_table() -> str:
    return os.getenv("CAR_IMAGES_TABLE", "car_images")


def ingest_tasks_table() -> str:
    return os.getenv("INGEST_TASKS_TABLE", "ingest_tasks")


def images_bucket() -> str:
    return os.getenv("STORAGE_BUCKET_CAR_IMAGES", "car-images")


def images_prefix() -> str:
    return os.getenv("CAR_IMAGES_PREFIX", "car")


def storage_root() -> str:
    return os.getenv("STORAGE_ROOT", "./storage")


def storage_public_base_url() -> str:
    return os.getenv("STORAGE_PUBLIC_BASE_URL", "/storage").rstrip("/")


def supabase_credentials():
    url = os.getenv("SUPABASE_URL", "").strip()
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
    if url and key:
        return url, key
    return None


def favorites_file() -> str:
    return os.getenv("FAVORITES_FILE", "./favorites.json")


def cookie_secure() -> bool:
    return os.getenv("COOKIE_SECURE", "0") == "1"
