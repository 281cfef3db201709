# storefront/tables.py
"""Thin table-service facade over a SQLAlchemy engine.

The storefront treats its database like a hosted table API: every call is a
single-table operation in its own transaction, and the live schema is
reflected on each call instead of trusting the ORM models. A deployment whose
tables lag behind the code therefore reports *which* column is missing, and
the persistence layer can negotiate around it (see ``storefront.crud``).

Driver exceptions never leave this module; they are translated into the
``storefront.errors`` taxonomy with messages modelled on PostgREST's wording.
"""
import re
import uuid
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import MetaData, Table, String, Text, select, delete
from sqlalchemy.exc import IntegrityError, NoSuchTableError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeout

from .errors import (
    ConflictError, MissingTableError, NoRowsError, SchemaMismatchError, TransientBackendError, UpstreamError,
)

_UNIQUE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),
    re.compile(r"Key \((\w+)[^)]*\)="),
    re.compile(r'unique constraint "\w+?_(\w+)_key"'),
    re.compile(r"Duplicate entry .* for key '(?:\w+\.)?(\w+)'"),
)


def missing_column_message(table: str, column: str) -> str:
    return f"Could not find the '{column}' column of '{table}' in the schema cache"


def _unique_column(message: str) -> Optional[str]:
    for pattern in _UNIQUE_PATTERNS:
        m = pattern.search(message)
        if m:
            return m.group(1)
    return None


class TableStore:
    def __init__(self, engine):
        self.engine = engine

    # -- schema ---------------------------------------------------------
    def table(self, name: str) -> Table:
        try:
            return Table(name, MetaData(), autoload_with=self.engine)
        except NoSuchTableError:
            raise MissingTableError(f'relation "{name}" does not exist', table=name) from None
        except OperationalError as e:
            raise TransientBackendError(f"Failed to read schema of {name}: {e}") from e
        except SQLAlchemyError as e:
            raise UpstreamError(f"Failed to read schema of {name}: {e}") from e

    def columns(self, name: str) -> List[str]:
        return [c.name for c in self.table(name).columns]

    def _check_columns(self, table: Table, keys: Iterable[str]):
        for key in keys:
            if key not in table.c:
                raise SchemaMismatchError(missing_column_message(table.name, key), column=key, table=table.name)

    def _with_generated_keys(self, table: Table, row: Dict[str, Any]) -> Dict[str, Any]:
        # emulate uuid primary keys generated by the hosted database
        out = dict(row)
        for col in table.primary_key.columns:
            if col.name not in out and isinstance(col.type, (String, Text)):
                out[col.name] = str(uuid.uuid4())
        return out

    def _translate(self, table: Table, error: SQLAlchemyError, action: str):
        message = str(getattr(error, "orig", None) or error)
        if isinstance(error, IntegrityError):
            column = _unique_column(message)
            if column or "unique" in message.lower() or "duplicate" in message.lower():
                raise ConflictError(
                    f"duplicate key value violates unique constraint on {table.name}.{column or '?'}: {message}",
                    column=column,
                ) from error
        if isinstance(error, (OperationalError, PoolTimeout)) or getattr(error, "connection_invalidated", False):
            raise TransientBackendError(f"Failed to {action} {table.name}: {message}") from error
        raise UpstreamError(f"Failed to {action} {table.name}: {message}") from error

    # -- reads ----------------------------------------------------------
    def select(self, name: str, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
               descending: bool = False, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        table = self.table(name)
        filters = filters or {}
        self._check_columns(table, list(filters) + ([order_by] if order_by else []))
        stmt = select(table)
        for key, value in filters.items():
            stmt = stmt.where(table.c[key] == value)
        if order_by:
            stmt = stmt.order_by(table.c[order_by].desc() if descending else table.c[order_by].asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self.engine.connect() as conn:
                return [dict(r) for r in conn.execute(stmt).mappings().all()]
        except SQLAlchemyError as e:
            self._translate(table, e, "read")

    def select_in(self, name: str, column: str, values: Iterable[Any], order_by: Optional[str] = None) -> List[Dict[str, Any]]:
        values = list(values)
        if not values:
            return []
        table = self.table(name)
        self._check_columns(table, [column] + ([order_by] if order_by else []))
        stmt = select(table).where(table.c[column].in_(values))
        if order_by:
            stmt = stmt.order_by(table.c[order_by].asc())
        try:
            with self.engine.connect() as conn:
                return [dict(r) for r in conn.execute(stmt).mappings().all()]
        except SQLAlchemyError as e:
            self._translate(table, e, "read")

    # -- writes ---------------------------------------------------------
    def insert(self, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored."""
        table = self.table(name)
        self._check_columns(table, payload)
        row = self._with_generated_keys(table, payload)
        stmt = table.insert().values(**row).returning(*table.c)
        try:
            with self.engine.begin() as conn:
                return dict(conn.execute(stmt).mappings().one())
        except SQLAlchemyError as e:
            self._translate(table, e, "insert into")

    def insert_many(self, name: str, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        table = self.table(name)
        for row in rows:
            self._check_columns(table, row)
        rows = [self._with_generated_keys(table, row) for row in rows]
        try:
            with self.engine.begin() as conn:
                conn.execute(table.insert(), rows)
        except SQLAlchemyError as e:
            self._translate(table, e, "insert into")
        return len(rows)

    def update(self, name: str, column: str, value: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Update rows where ``column == value``; returns the first updated row.

        Raises ``NoRowsError`` when nothing matched.
        """
        table = self.table(name)
        self._check_columns(table, [column] + list(payload))
        stmt = table.update().where(table.c[column] == value).values(**payload).returning(*table.c)
        try:
            with self.engine.begin() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            self._translate(table, e, "update")
        if not rows:
            raise NoRowsError(f"Update on {name} matched 0 rows ({column}={value})")
        return dict(rows[0])

    def delete(self, name: str, column: str, value: Any) -> int:
        table = self.table(name)
        self._check_columns(table, [column])
        try:
            with self.engine.begin() as conn:
                return conn.execute(delete(table).where(table.c[column] == value)).rowcount
        except SQLAlchemyError as e:
            self._translate(table, e, "delete from")
