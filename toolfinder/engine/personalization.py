"""Per-user recency and favorites, persisted through a key-value store.

Both collections live in ONE JSON record so clearing history is a single
write. Missing or unreadable data loads as empty collections. If the storage
layer raises, the store keeps working in memory for the rest of the session
and never passes the error on.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from loguru import logger

from .catalog import Catalog
from .errors import PersistenceHealth, StorageError
from .models import PersonalizationSnapshot, RecentEntry, UtilityDefinition
from .storage import StorageProvider

DEFAULT_STORAGE_KEY = "toolfinder.preferences"
DEFAULT_MAX_RECENT = 10

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept ISO-8601 strings or epoch milliseconds."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def _parse_recent(item: Any) -> Optional[RecentEntry]:
    # Older records stored bare ids
    if isinstance(item, str):
        return RecentEntry(utility_id=item, last_used_at=_EPOCH) if item else None
    if not isinstance(item, dict):
        return None

    utility_id = item.get("utilityId")
    if not isinstance(utility_id, str) or not utility_id:
        return None

    last_used_at = _parse_timestamp(item.get("lastUsedAt", item.get("timestamp"))) or _EPOCH
    use_count = item.get("useCount", 1)
    if not isinstance(use_count, int) or isinstance(use_count, bool) or use_count < 1:
        use_count = 1
    return RecentEntry(utility_id=utility_id, last_used_at=last_used_at, use_count=use_count)


def format_time_since(moment: datetime, now: Optional[datetime] = None) -> str:
    """Short relative age, e.g. 'Just now', '5m ago', '3d ago'."""
    now = now or _utcnow()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    diff = max(0.0, (now - moment).total_seconds())
    minutes = int(diff // 60)
    hours = int(diff // 3600)
    days = int(diff // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"
    if days < 30:
        return f"{days // 7}w ago"
    return f"{days // 30}mo ago"


class PersonalizationStore:
    """
    Owns the recently-used list and the favorite set.

    Recents hold at most `max_recent` entries, most recent first, one per
    utility. Favorites keep insertion order. Lookups resolve ids against the
    current catalog and silently drop ids the catalog no longer has.
    """

    def __init__(
        self,
        catalog: Catalog,
        storage: Optional[StorageProvider] = None,
        max_recent: int = DEFAULT_MAX_RECENT,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], datetime] = _utcnow
    ):
        if max_recent < 1:
            raise ValueError("max_recent must be at least 1")

        self.catalog = catalog
        self.storage = storage
        self.max_recent = max_recent
        self.storage_key = storage_key
        self.clock = clock
        self.health = PersistenceHealth("personalization")

        self._loaded = False
        self._recents: List[RecentEntry] = []
        self._favorites: List[str] = []

    # Persistence

    @property
    def persistent(self) -> bool:
        """False once the store has fallen back to memory-only mode."""
        return self.storage is not None and self.health.is_available

    def _storage_call(self, operation: str, *args: Any) -> Any:
        if not self.persistent:
            return None
        try:
            result = getattr(self.storage, operation)(self.storage_key, *args)
        except Exception as e:
            self.health.record_failure(
                StorageError(operation, self.storage_key, e), operation=operation
            )
            return None
        self.health.record_success()
        return result

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        raw = self._storage_call("get")
        if not raw:
            return

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable personalization data: {e}")
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring personalization data that is not an object")
            return

        recents: List[RecentEntry] = []
        seen = set()
        raw_recents = data.get("recentlyUsed")
        for item in raw_recents if isinstance(raw_recents, list) else []:
            entry = _parse_recent(item)
            if entry is None or entry.utility_id in seen:
                continue
            seen.add(entry.utility_id)
            recents.append(entry)
        self._recents = recents[:self.max_recent]

        favorites: List[str] = []
        raw_favorites = data.get("favorites")
        for item in raw_favorites if isinstance(raw_favorites, list) else []:
            if isinstance(item, str) and item and item not in favorites:
                favorites.append(item)
        self._favorites = favorites

        logger.debug(
            f"Loaded {len(self._recents)} recent and {len(self._favorites)} favorite utilities"
        )

    def _save(self) -> None:
        payload = json.dumps({
            "recentlyUsed": [entry.to_dict() for entry in self._recents],
            "favorites": list(self._favorites),
        })
        self._storage_call("set", payload)

    # Operations

    def set_catalog(self, catalog: Catalog) -> None:
        """Resolve ids against a replacement catalog from now on."""
        self.catalog = catalog

    def record_use(self, utility_id: str) -> None:
        """Move (or add) a utility to the front of the recents list."""
        if not utility_id:
            return
        self._ensure_loaded()

        previous = next((e for e in self._recents if e.utility_id == utility_id), None)
        use_count = previous.use_count + 1 if previous else 1
        self._recents = [e for e in self._recents if e.utility_id != utility_id]
        self._recents.insert(0, RecentEntry(
            utility_id=utility_id,
            last_used_at=self.clock(),
            use_count=use_count
        ))
        del self._recents[self.max_recent:]
        self._save()

    def toggle_favorite(self, utility_id: str) -> bool:
        """Flip favorite membership. Returns True if now a favorite."""
        if not utility_id:
            return False
        self._ensure_loaded()

        if utility_id in self._favorites:
            self._favorites.remove(utility_id)
            is_favorite = False
        else:
            self._favorites.append(utility_id)
            is_favorite = True
        self._save()
        return is_favorite

    def is_favorite(self, utility_id: str) -> bool:
        self._ensure_loaded()
        return utility_id in self._favorites

    def clear_history(self) -> None:
        """Empty recents and favorites together."""
        self._ensure_loaded()
        self._recents = []
        self._favorites = []
        self._storage_call("remove")
        logger.info("Personalization history cleared")

    def recent_entries(self) -> List[RecentEntry]:
        """Stored entries, most recent first, including ids the catalog lacks."""
        self._ensure_loaded()
        return list(self._recents)

    def get_recently_used(self) -> List[UtilityDefinition]:
        self._ensure_loaded()
        return self._resolve(e.utility_id for e in self._recents)

    def get_favorites(self) -> List[UtilityDefinition]:
        """Favorite utilities in the order they were added."""
        self._ensure_loaded()
        return self._resolve(self._favorites)

    def snapshot(self) -> PersonalizationSnapshot:
        self._ensure_loaded()
        return PersonalizationSnapshot(
            recent_ids=tuple(e.utility_id for e in self._recents),
            favorite_ids=tuple(self._favorites)
        )

    def _resolve(self, ids) -> List[UtilityDefinition]:
        utilities = []
        for utility_id in ids:
            utility = self.catalog.get(utility_id)
            if utility is not None:
                utilities.append(utility)
        return utilities
