# storefront/ledger.py
"""Best-effort audit trail for ingestion runs.

One ``ingest_tasks`` row per run: inserted as ``running`` and finalized once
as ``success`` or ``failed``. The ledger never interrupts ingestion. If its
table is missing or unwritable it disables itself and reports a warning
string instead.
"""
from typing import Any, Dict, Optional

from . import config
from .crud import insert_with_column_fallback, update_with_column_fallback
from .errors import MissingTableError, StorefrontError
from .tables import TableStore
from .utils import logger, truncate


class IngestTaskLedger:
    def __init__(self, store: TableStore, table: Optional[str] = None):
        self.store = store
        self.table = table or config.ingest_tasks_table()
        self.task_id: Optional[str] = None
        self.disabled = False
        self.warning: Optional[str] = None
        self.finalized = False

    def begin(self) -> Optional[str]:
        try:
            row = insert_with_column_fallback(
                self.store, self.table, {"status": "running", "retry_count": 0, "error_message": None}
            )
        except MissingTableError:
            return self._disable(f"Task logging disabled because table {self.table} does not exist")
        except StorefrontError as e:
            return self._disable(f"Task logging disabled: {e}")
        task_id = row.get("id")
        if task_id in (None, ""):
            return self._disable("Task logging disabled: insert returned no id")
        self.task_id = str(task_id)
        logger.info("Ingest task %s started", self.task_id)
        return self.task_id

    def _disable(self, warning):
        self.disabled = True
        self.warning = warning
        logger.warning(warning)
        return None

    def patch(self, fields: Dict[str, Any]) -> Optional[str]:
        """Update the open task row; returns a warning string instead of raising."""
        if self.disabled or not self.task_id:
            return None
        try:
            update_with_column_fallback(self.store, self.table, "id", self.task_id, fields)
        except StorefrontError as e:
            logger.warning("Failed to update ingest task %s: %s", self.task_id, e)
            return str(e)
        return None

    def _finish(self, fields):
        if self.finalized:
            return None
        self.finalized = True
        return self.patch(fields)

    def succeed(self, car_id: str, stock_no: str, retry_count: int = 0) -> Optional[str]:
        return self._finish({
            "status": "success",
            "retry_count": retry_count,
            "error_message": None,
            "car_id": car_id,
            "stock_no": stock_no,
        })

    def fail(self, error, retry_count: int = 0, car_id: Optional[str] = None) -> Optional[str]:
        fields = {"status": "failed", "retry_count": retry_count, "error_message": truncate(error)}
        if car_id:
            fields["car_id"] = car_id
        return self._finish(fields)
