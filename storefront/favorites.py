# storefront/favorites.py
"""Favorite car ids persisted to a small JSON file.

Reads are cached against the raw file content, so repeated ``get_ids`` calls
return the same tuple until the file changes. Subscribers are called
synchronously after every write.
"""
import json
import threading
from functools import lru_cache
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from . import config
from .utils import logger


def parse_favorites(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring unreadable favorites data")
        return []
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, str)]


class FavoritesStore:
    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cached_raw = None
        self._cached: Tuple[str, ...] = ()
        self._subscribers: List[Callable[[], None]] = []

    def _read_raw(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def get_ids(self) -> Tuple[str, ...]:
        raw = self._read_raw()
        with self._lock:
            if raw != self._cached_raw:
                self._cached_raw = raw
                self._cached = tuple(parse_favorites(raw))
            return self._cached

    def is_favorite(self, car_id: str) -> bool:
        return car_id in self.get_ids()

    def set_ids(self, ids) -> Tuple[str, ...]:
        ids = tuple(dict.fromkeys(i for i in ids if isinstance(i, str)))
        serialized = json.dumps(ids)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(serialized, encoding="utf-8")
            self._cached_raw = serialized
            self._cached = ids
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback()
        return ids

    def toggle(self, car_id: str) -> bool:
        """Add or remove ``car_id``; returns True when it is now a favorite."""
        current = self.get_ids()
        if car_id in current:
            self.set_ids([i for i in current if i != car_id])
            return False
        self.set_ids(current + (car_id,))
        return True

    def remove(self, car_id: str) -> bool:
        """Drop ``car_id``; returns False when it was not a favorite."""
        current = self.get_ids()
        if car_id not in current:
            return False
        self.set_ids([i for i in current if i != car_id])
        return True

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe


@lru_cache(maxsize=None)
def _store_for(path: str) -> FavoritesStore:
    return FavoritesStore(path)


def get_favorites() -> FavoritesStore:
    return _store_for(config.favorites_file())
