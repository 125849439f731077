"""
Search indexer.
Precomputes normalized text per utility so scoring does no
string preparation per keystroke.
"""

import re
from typing import Iterable, List, Optional

from loguru import logger

from .categories import category_label
from .models import IndexedUtility, UtilityDefinition

_WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.lower()).strip()


def query_terms(query: Optional[str]) -> List[str]:
    """Whitespace-split terms of a normalized query, duplicates removed."""
    terms: List[str] = []
    for term in normalize(query).split(" "):
        if term and term not in terms:
            terms.append(term)
    return terms


def index_utility(utility: UtilityDefinition) -> IndexedUtility:
    """Index a single utility. Absent fields index as empty."""
    return IndexedUtility(
        utility=utility,
        name=normalize(utility.name),
        description=normalize(utility.description),
        keywords=tuple(filter(None, (normalize(k) for k in (utility.keywords or ())))),
        category_id=normalize(utility.category),
        category_label=normalize(category_label(utility.category or "")),
    )


def build_index(catalog: Iterable[UtilityDefinition]) -> List[IndexedUtility]:
    """Index every utility in catalog order. Pure and deterministic."""
    return [index_utility(u) for u in catalog]


class SearchIndex:
    """
    Caches the index for one catalog reference.

    A different catalog object (hot update) triggers a rebuild; the same
    object reuses the cached index.
    """

    def __init__(self):
        self._catalog = None
        self._entries: List[IndexedUtility] = []
        self.build_count = 0

    def get(self, catalog: Iterable[UtilityDefinition]) -> List[IndexedUtility]:
        if catalog is not self._catalog:
            self._entries = build_index(catalog)
            self._catalog = catalog
            self.build_count += 1
            logger.debug(f"Search index rebuilt with {len(self._entries)} utilities")
        return self._entries
