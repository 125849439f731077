"""Utility catalog loading.

The catalog is supplied from outside the engine (built-in registry, YAML or
JSON file). Loading is tolerant: absent fields become empty values and
records that cannot describe a utility at all are skipped with a warning.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import yaml
from loguru import logger

from .errors import CatalogError
from .models import UtilityDefinition


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_keywords(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    if isinstance(value, Iterable):
        return tuple(_as_text(v) for v in value if v is not None and _as_text(v).strip())
    return (_as_text(value),)


def utility_from_record(record: Any) -> Optional[UtilityDefinition]:
    """
    Build a UtilityDefinition from a loosely-typed record.

    Returns None when the record is not a mapping or has no id.
    """
    if isinstance(record, UtilityDefinition):
        return record
    if not isinstance(record, Mapping):
        logger.warning(f"Skipping catalog entry that is not a mapping: {record!r}")
        return None

    utility_id = _as_text(record.get("id")).strip()
    if not utility_id:
        logger.warning(f"Skipping catalog entry without id: {dict(record)!r}")
        return None

    # "tags" / "path" are accepted as aliases used by command-palette data
    keywords = record.get("keywords", record.get("tags"))
    route = record.get("route", record.get("path"))

    return UtilityDefinition(
        id=utility_id,
        name=_as_text(record.get("name")),
        description=_as_text(record.get("description")),
        category=_as_text(record.get("category")),
        keywords=_as_keywords(keywords),
        route=_as_text(route),
        featured=bool(record.get("featured", False)),
    )


class Catalog:
    """
    Immutable, ordered collection of utility definitions.

    Ids are unique: when a record repeats an id, the first one wins.
    """

    def __init__(self, utilities: Iterable[UtilityDefinition] = ()):
        ordered: List[UtilityDefinition] = []
        by_id: Dict[str, UtilityDefinition] = {}
        for utility in utilities:
            if utility.id in by_id:
                logger.warning(f"Duplicate utility id in catalog, keeping first: {utility.id}")
                continue
            by_id[utility.id] = utility
            ordered.append(utility)

        self._utilities: Tuple[UtilityDefinition, ...] = tuple(ordered)
        self._by_id = by_id

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "Catalog":
        """Build a catalog from dictionaries (or UtilityDefinitions)."""
        utilities = []
        for record in records or ():
            utility = utility_from_record(record)
            if utility is not None:
                utilities.append(utility)
        return cls(utilities)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Catalog":
        """
        Load a catalog from a YAML or JSON file.

        The file holds either a list of utility records or a mapping with a
        `utilities` list.
        """
        path = Path(path).expanduser()
        if not path.exists():
            raise CatalogError(f"Catalog file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise CatalogError(f"Cannot read catalog {path}: {e}") from e

        if isinstance(data, Mapping):
            data = data.get("utilities", [])
        if data is None:
            data = []
        if not isinstance(data, list):
            raise CatalogError(f"Catalog {path} must contain a list of utilities")

        catalog = cls.from_records(data)
        logger.info(f"Loaded {len(catalog)} utilities from {path}")
        return catalog

    @property
    def utilities(self) -> Tuple[UtilityDefinition, ...]:
        return self._utilities

    def get(self, utility_id: str) -> Optional[UtilityDefinition]:
        return self._by_id.get(utility_id)

    def __contains__(self, utility_id: object) -> bool:
        return utility_id in self._by_id

    def __iter__(self) -> Iterator[UtilityDefinition]:
        return iter(self._utilities)

    def __len__(self) -> int:
        return len(self._utilities)

    def by_category(self, category_id: str) -> List[UtilityDefinition]:
        return [u for u in self._utilities if u.category == category_id]
