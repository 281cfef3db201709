# storefront/crud.py
"""Car persistence with column negotiation and idempotent inserts.

Writes go through ``insert_with_column_fallback`` /
``update_with_column_fallback``: when the backend reports that a column does
not exist, that column is dropped from the payload and the write is retried,
at most ``MAX_COLUMN_RETRIES`` times. Inserting a car whose ``stock_no``
already exists returns the stored row instead of failing, so resubmitting the
same description is safe.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import config
from .errors import ConflictError, NoRowsError, SchemaMismatchError, UpstreamError, ValidationError
from .parser import CarRecord
from .tables import TableStore
from .utils import logger

MAX_COLUMN_RETRIES = 8
ID_COLUMNS = ("id", "car_id")
EDITABLE_FIELDS = {
    "brand", "model", "title", "price", "year", "mileage",
    "engine", "trans", "fuel", "status", "stock_no", "specs_json",
}
NUMERIC_FIELDS = {"price", "year", "mileage"}
EXTENDED_FIELDS = {"specs_json"}


@dataclass
class UpdateResult:
    row: Dict[str, Any]
    dropped_columns: List[str] = field(default_factory=list)

    @property
    def specs_dropped(self) -> bool:
        return any(c in EXTENDED_FIELDS for c in self.dropped_columns)


def car_id_of(row: Optional[Dict[str, Any]]) -> str:
    if not row:
        return ""
    value = row.get("car_id") or row.get("id")
    return str(value) if value is not None else ""


def insert_with_column_fallback(store: TableStore, table: str, payload: Dict[str, Any],
                                on_retry: Optional[Callable[[int], None]] = None,
                                required: tuple = ()) -> Dict[str, Any]:
    """Insert ``payload``, dropping columns the backend does not know about.

    ``on_retry(n)`` is called before the n-th retry. Dropping a column listed
    in ``required`` is not allowed; the schema error is raised instead.
    """
    data = dict(payload)
    for attempt in range(MAX_COLUMN_RETRIES):
        if attempt and on_retry:
            on_retry(attempt)
        try:
            return store.insert(table, data)
        except SchemaMismatchError as e:
            if e.column not in data or e.column in required:
                raise
            logger.warning("Column %s missing on %s, retrying insert without it", e.column, table)
            del data[e.column]
    raise UpstreamError(f"Failed to insert into {table}: too many retries")


def update_with_column_fallback(store: TableStore, table: str, column: str, value: Any,
                                payload: Dict[str, Any]) -> UpdateResult:
    data = dict(payload)
    dropped: List[str] = []
    for _ in range(MAX_COLUMN_RETRIES):
        try:
            return UpdateResult(store.update(table, column, value, data), dropped)
        except SchemaMismatchError as e:
            if e.column == column or e.column not in data:
                raise
            logger.warning("Column %s missing on %s, retrying update without it", e.column, table)
            del data[e.column]
            dropped.append(e.column)
            if not data:
                raise UpstreamError(
                    f"No columns left to update after dropping missing columns: {', '.join(dropped)}"
                ) from e
    raise UpstreamError(f"Failed to update {table}: too many retries")


def get_car_by_stock_no(store: TableStore, stock_no: str, table: Optional[str] = None) -> Optional[Dict[str, Any]]:
    rows = store.select(table or config.cars_table(), {"stock_no": stock_no}, limit=1)
    return rows[0] if rows else None


def find_car(store: TableStore, car_id: str, table: Optional[str] = None) -> Dict[str, Any]:
    """Read one car by ``id``, then by ``car_id`` on tables keyed that way."""
    table = table or config.cars_table()
    for column in ID_COLUMNS:
        try:
            rows = store.select(table, {column: car_id}, limit=1)
        except SchemaMismatchError as e:
            if e.column != column:
                raise
            continue
        if rows:
            return rows[0]
    raise NoRowsError(f"Car not found: {car_id}")


def insert_car(store: TableStore, record: CarRecord, on_retry=None, table: Optional[str] = None) -> Dict[str, Any]:
    table = table or config.cars_table()
    try:
        row = insert_with_column_fallback(store, table, record.to_payload(), on_retry, required=("stock_no",))
    except ConflictError as e:
        if e.column != "stock_no":
            raise UpstreamError(f"Failed to insert into {table}: {e}") from e
        existing = get_car_by_stock_no(store, record.stock_no, table)
        if not existing:
            raise UpstreamError(f"Failed to insert into {table}: {e}") from e
        logger.warning("stock_no %s already stored, reusing car %s", record.stock_no, car_id_of(existing))
        return existing
    except SchemaMismatchError as e:
        raise UpstreamError(f"Failed to insert into {table}: {e}") from e
    logger.info("Inserted car %s (stock_no=%s)", car_id_of(row), record.stock_no)
    return row


def _by_either_id(store: TableStore, table: str, car_id: str, payload: Dict[str, Any]) -> UpdateResult:
    for column in ID_COLUMNS:
        try:
            return update_with_column_fallback(store, table, column, car_id, payload)
        except NoRowsError:
            continue
        except SchemaMismatchError as e:
            if e.column != column:
                raise
    raise NoRowsError(f"Car not found: {car_id}")


def update_car(store: TableStore, car_id: str, updates: Dict[str, Any], table: Optional[str] = None) -> UpdateResult:
    table = table or config.cars_table()
    result = _by_either_id(store, table, car_id, updates)
    if result.dropped_columns:
        logger.warning("Car %s updated without columns: %s", car_id, ", ".join(result.dropped_columns))
    return result


def hide_car(store: TableStore, car_id: str, table: Optional[str] = None) -> Dict[str, Any]:
    table = table or config.cars_table()
    return _by_either_id(store, table, car_id, {"status": "hidden"}).row


def sanitize_car_updates(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only editable fields, with blank values removed and numbers truncated."""
    updates: Dict[str, Any] = {}
    for key, value in (raw or {}).items():
        if key not in EDITABLE_FIELDS:
            continue
        if key == "specs_json":
            if not isinstance(value, dict):
                continue
            specs = {str(k): str(v if v is not None else "").strip() for k, v in value.items()}
            updates[key] = {k: v for k, v in specs.items() if v}
            continue
        if key in NUMERIC_FIELDS:
            if value is None or value == "":
                continue
            try:
                updates[key] = int(float(value))
            except (TypeError, ValueError, OverflowError):
                raise ValidationError(f"Invalid numeric value for {key}") from None
            continue
        if not isinstance(value, str) or not value.strip():
            continue
        updates[key] = value.strip()
    return updates
