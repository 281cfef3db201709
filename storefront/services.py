# storefront/services.py
"""Car ingestion pipeline.

parse -> open task -> insert car -> upload + associate images -> close task,
strictly in that order and one step at a time. Parsing happens before the
task ledger is opened, so a rejected description leaves no task row. Once the
car row exists it is never rolled back; a later image failure is reported as
``PartialWriteError`` and recorded on the task.
"""
from dataclasses import dataclass, asdict
from typing import Optional, Sequence

from .crud import car_id_of, insert_car
from .errors import PartialWriteError, StorefrontError, UpstreamError, ValidationError, get_error_hint
from .images import ImageUpload, append_car_images, supported_files
from .ledger import IngestTaskLedger
from .parser import parse_car_text
from .tables import TableStore
from .utils import logger


@dataclass
class IngestResult:
    car_id: str
    stock_no: str
    inserted_car_images: int
    uploaded_image_files: int
    task_id: Optional[str] = None
    logging_warning: Optional[str] = None

    def as_response(self):
        body = asdict(self)
        body["done"] = True
        return body


class IngestFailure(Exception):
    """A failed run after the task ledger was opened."""

    def __init__(self, error: Exception, task_id=None, logging_warning=None):
        super().__init__(str(error))
        self.error = error
        self.task_id = task_id
        self.logging_warning = logging_warning

    @property
    def hint(self):
        return get_error_hint(self.error)

    def as_response(self):
        return {
            "error": str(self.error),
            "hint": self.hint,
            "task_id": self.task_id,
            "logging_warning": self.logging_warning,
        }


def ingest_car(store: TableStore, objects, car_text: str, files: Sequence[ImageUpload] = ()) -> IngestResult:
    if not (car_text or "").strip():
        raise ValidationError("car_text is required")
    record = parse_car_text(car_text)
    image_files = supported_files(files)

    ledger = IngestTaskLedger(store)
    ledger.begin()
    retry_count = 0
    car_id = None

    def on_retry(count):
        nonlocal retry_count
        retry_count = count
        ledger.patch({"retry_count": count})

    try:
        row = insert_car(store, record, on_retry=on_retry)
        car_id = car_id_of(row)
        if not car_id:
            raise UpstreamError("Insert succeeded but no car_id/id was returned from cars")
        try:
            appended = append_car_images(store, objects, car_id, image_files)
        except StorefrontError as e:
            raise PartialWriteError(f"Car {car_id} was saved but its images were not: {e}", car_id=car_id) from e
    except Exception as e:
        logger.exception("Ingestion of %s failed", record.stock_no)
        ledger.fail(e, retry_count, car_id)
        raise IngestFailure(e, ledger.task_id, ledger.warning) from e

    update_warning = ledger.succeed(car_id, record.stock_no, retry_count)
    logger.info("Ingested car %s with %d new images", car_id, appended.inserted)
    return IngestResult(
        car_id=car_id,
        stock_no=record.stock_no,
        inserted_car_images=appended.inserted,
        uploaded_image_files=appended.uploaded,
        task_id=ledger.task_id,
        logging_warning=ledger.warning or update_warning,
    )
