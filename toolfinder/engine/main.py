"""Wiring of the search engine from configuration."""

from typing import Optional

from loguru import logger

from .bus import EventBus
from .catalog import Catalog
from .config import Config
from .controller import SearchController
from .personalization import PersonalizationStore
from .recent_searches import RecentSearches
from .registry import default_catalog
from .storage import JsonFileStorage, MemoryStorage, StorageProvider


def load_catalog(config: Config) -> Catalog:
    """Catalog from the configured file, or the built-in one."""
    if config.catalog_path is None:
        return default_catalog()
    return Catalog.load(config.catalog_path)


def create_storage(config: Config) -> StorageProvider:
    if not config.storage.enabled:
        logger.debug("Persistent storage disabled, using memory storage")
        return MemoryStorage()
    return JsonFileStorage(config.storage.path)


def build_controller(
    config: Optional[Config] = None,
    catalog: Optional[Catalog] = None,
    storage: Optional[StorageProvider] = None,
    event_bus: Optional[EventBus] = None
) -> SearchController:
    """
    Assemble a controller with its store and query history.

    Explicit arguments take precedence over what the config describes.
    """
    config = config or Config()
    catalog = catalog if catalog is not None else load_catalog(config)
    storage = storage if storage is not None else create_storage(config)

    store = PersonalizationStore(
        catalog,
        storage,
        max_recent=config.personalization.max_recent,
        storage_key=config.personalization.storage_key
    )
    recent_searches = RecentSearches(
        storage,
        max_items=config.personalization.max_recent_searches,
        storage_key=config.personalization.recent_searches_key
    )

    logger.debug(f"Search engine ready with {len(catalog)} utilities")
    return SearchController(
        catalog,
        store,
        config=config,
        event_bus=event_bus,
        recent_searches=recent_searches
    )
