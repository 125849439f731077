"""History of recently submitted query strings."""

import json
from typing import Any, List, Optional

from loguru import logger

from .errors import PersistenceHealth, StorageError
from .storage import StorageProvider

DEFAULT_RECENT_SEARCHES_KEY = "toolfinder.recentSearches"


class RecentSearches:
    """
    Bounded list of recent queries, newest first.

    Queries compare case-insensitively; re-adding one moves it to the front
    with its latest spelling. Storage failures fall back to memory.
    """

    def __init__(
        self,
        storage: Optional[StorageProvider] = None,
        max_items: int = 5,
        storage_key: str = DEFAULT_RECENT_SEARCHES_KEY
    ):
        self.storage = storage
        self.max_items = max_items
        self.storage_key = storage_key
        self.health = PersistenceHealth("recent_searches")
        self._items: Optional[List[str]] = None

    def _storage_call(self, operation: str, *args: Any) -> Any:
        if self.storage is None or not self.health.is_available:
            return None
        try:
            result = getattr(self.storage, operation)(self.storage_key, *args)
        except Exception as e:
            self.health.record_failure(StorageError(operation, self.storage_key, e))
            return None
        self.health.record_success()
        return result

    def _load(self) -> List[str]:
        if self._items is not None:
            return self._items

        self._items = []
        raw = self._storage_call("get")
        if not raw:
            return self._items
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable recent searches: {e}")
            return self._items

        if isinstance(data, list):
            for item in data:
                if isinstance(item, str) and item.strip() and not self._contains(item):
                    self._items.append(item)
        del self._items[self.max_items:]
        return self._items

    def _contains(self, query: str) -> bool:
        folded = query.casefold()
        return any(item.casefold() == folded for item in self._items)

    def _save(self) -> None:
        self._storage_call("set", json.dumps(self._items))

    def get(self) -> List[str]:
        return list(self._load())

    def add(self, query: str) -> List[str]:
        if not query or not query.strip():
            return self.get()
        query = query.strip()
        folded = query.casefold()

        items = [item for item in self._load() if item.casefold() != folded]
        items.insert(0, query)
        self._items = items[:self.max_items]
        self._save()
        return self.get()

    def remove(self, query: str) -> List[str]:
        folded = (query or "").strip().casefold()
        self._items = [item for item in self._load() if item.casefold() != folded]
        self._save()
        return self.get()

    def clear(self) -> None:
        self._items = []
        self._storage_call("remove")
