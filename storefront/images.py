# storefront/images.py
"""Car photo association management.

``reconcile_car_images`` rewrites a car's ordered photo set from a list of
descriptors (``existing:<url>`` or ``new:<key>``); ``append_car_images`` adds
freshly ingested photos after the current ones.

Two reconciliations for the same car are not coordinated here. Callers must
serialize them (the admin UI edits one car at a time). The delete-then-insert
swap is not atomic: a crash between the two statements leaves the car without
photos, while an insert *error* restores the previous rows.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from . import config
from .crud import find_car
from .errors import StorefrontError, UpstreamError, ValidationError
from .storage import car_image_path, content_type_for, is_supported_image
from .tables import TableStore
from .utils import logger

EXISTING_PREFIX = "existing:"
NEW_PREFIX = "new:"


@dataclass
class ImageUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class ReconcileResult:
    car_id: str
    image_urls: List[str]
    uploaded: int
    changed: bool

    @property
    def image_count(self):
        return len(self.image_urls)


@dataclass
class AppendResult:
    image_urls: List[str]
    uploaded: int
    inserted: int


def supported_files(files: Sequence[ImageUpload]) -> List[ImageUpload]:
    # keep incoming order so the first file becomes the cover image
    return [f for f in files if is_supported_image(f.filename)]


def unique_in_order(items):
    seen = set()
    out = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def read_car_images(store: TableStore, car_id: str, table: Optional[str] = None) -> List[Dict]:
    table = table or config.car_images_table()
    try:
        rows = store.select(table, {"car_id": car_id}, order_by="sort_order")
    except StorefrontError as e:
        raise UpstreamError(f"Failed to read {table}: {e}") from e
    out = []
    for row in rows:
        url = str(row.get("image_url") or "")
        if url:
            out.append({"image_url": url, "sort_order": int(row.get("sort_order") or 0)})
    return out


def upload_image(objects, car_id: str, upload: ImageUpload) -> str:
    path = car_image_path(car_id, upload.filename, upload.content)
    objects.upload(path, upload.content, upload.content_type or content_type_for(upload.filename))
    url = objects.public_url(path)
    logger.info("Uploaded %s for car %s", upload.filename, car_id)
    return url


def replace_car_images(store: TableStore, car_id: str, urls: List[str], previous: List[Dict],
                       table: Optional[str] = None):
    table = table or config.car_images_table()
    try:
        store.delete(table, "car_id", car_id)
    except StorefrontError as e:
        raise UpstreamError(f"Failed to clear old {table} rows: {e}") from e
    if not urls:
        return
    rows = [{"car_id": car_id, "image_url": url, "sort_order": i} for i, url in enumerate(urls)]
    try:
        store.insert_many(table, rows)
    except StorefrontError as e:
        if previous:
            restore = [
                {"car_id": car_id, "image_url": row["image_url"], "sort_order": i}
                for i, row in enumerate(sorted(previous, key=lambda r: r["sort_order"]))
            ]
            try:
                store.insert_many(table, restore)
                logger.warning("Restored %d previous images for car %s", len(restore), car_id)
            except StorefrontError:
                logger.exception("Failed to restore previous images for car %s", car_id)
        raise UpstreamError(f"Failed to write {table} rows: {e}") from e


def reconcile_car_images(store: TableStore, objects, car_id: str, ordered_items: Sequence[str],
                         named_files: Optional[Dict[str, ImageUpload]] = None,
                         fallback_files: Sequence[ImageUpload] = (),
                         table: Optional[str] = None, cars_table: Optional[str] = None) -> ReconcileResult:
    """Make the car's stored photo list match ``ordered_items``.

    ``new:<key>`` descriptors take ``named_files[key]`` or, failing that, the
    next file of ``fallback_files``. Unsupported extensions and stale
    ``existing:`` references are dropped; duplicates keep their first
    position. Nothing is written when the result is empty or identical to
    the stored order. Raises ``NoRowsError`` when no car owns ``car_id``.
    """
    named_files = named_files or {}
    find_car(store, car_id, cars_table)
    previous = read_car_images(store, car_id, table)
    current_urls = [row["image_url"] for row in previous]
    known = set(current_urls)
    fallback = supported_files(fallback_files)
    fallback_index = 0
    next_urls: List[str] = []
    uploaded = 0

    for item in ordered_items:
        if item.startswith(EXISTING_PREFIX):
            url = item[len(EXISTING_PREFIX):].strip()
            if url and url in known:
                next_urls.append(url)
            continue
        if not item.startswith(NEW_PREFIX):
            continue
        key = item[len(NEW_PREFIX):].strip()
        chosen = named_files.get(key)
        if chosen is None and fallback_index < len(fallback):
            chosen = fallback[fallback_index]
            fallback_index += 1
        if chosen is None:
            raise ValidationError(
                f"Missing upload file for {item}",
                hint="Attach a file_<key> field or an images entry for every new: descriptor.",
            )
        if not is_supported_image(chosen.filename):
            continue
        next_urls.append(upload_image(objects, car_id, chosen))
        uploaded += 1

    next_urls = unique_in_order(u for u in next_urls if u)
    if not next_urls or next_urls == current_urls:
        logger.info("Images for car %s unchanged", car_id)
        return ReconcileResult(car_id, current_urls, uploaded, False)

    replace_car_images(store, car_id, next_urls, previous, table)
    logger.info("Car %s now has %d images", car_id, len(next_urls))
    return ReconcileResult(car_id, next_urls, uploaded, True)


def append_car_images(store: TableStore, objects, car_id: str, files: Sequence[ImageUpload],
                      table: Optional[str] = None) -> AppendResult:
    """Upload ``files`` in order and add the URLs not yet stored after the current photos."""
    table = table or config.car_images_table()
    urls = [upload_image(objects, car_id, f) for f in supported_files(files)]
    if not urls:
        return AppendResult([], 0, 0)

    existing = read_car_images(store, car_id, table)
    known = {row["image_url"] for row in existing}
    next_order = max((row["sort_order"] for row in existing), default=-1) + 1
    fresh = [u for u in unique_in_order(urls) if u not in known]
    rows = [{"car_id": car_id, "image_url": url, "sort_order": next_order + i} for i, url in enumerate(fresh)]
    try:
        inserted = store.insert_many(table, rows)
    except StorefrontError as e:
        raise UpstreamError(f"Failed to insert into {table}: {e}") from e
    return AppendResult(urls, len(urls), inserted)
