"""Ranking of the whole catalog for a query."""

from typing import AbstractSet, Iterable, List, Optional, Sequence

from loguru import logger

from .indexer import SearchIndex, normalize
from .models import IndexedUtility, PersonalizationSnapshot, SearchResult, UtilityDefinition
from .scorer import score


def rank_index(
    query: str,
    entries: Sequence[IndexedUtility],
    personalized_ids: AbstractSet[str] = frozenset(),
    limit: Optional[int] = None
) -> List[SearchResult]:
    """
    Score every indexed utility, drop non-matches and order the rest.

    Ordering: relevance descending, then utilities that are recent or
    favorite, then featured utilities, then name (case-insensitive), then
    id. The order is a pure function of the inputs.
    """
    if not normalize(query):
        return []

    scored = []
    for entry in entries:
        result = score(query, entry)
        if result.score > 0:
            scored.append(SearchResult(
                utility=entry.utility,
                relevance_score=result.score,
                matched_fields=result.matched_fields
            ))

    scored.sort(key=lambda r: (
        -r.relevance_score,
        0 if r.utility.id in personalized_ids else 1,
        0 if r.utility.featured else 1,
        r.utility.name.casefold(),
        r.utility.id
    ))

    if limit is not None:
        scored = scored[:limit]
    return scored


class Ranker:
    """Ranks a catalog, reusing the cached index between calls."""

    def __init__(self, index: Optional[SearchIndex] = None):
        self.index = index or SearchIndex()

    def rank(
        self,
        query: str,
        catalog: Iterable[UtilityDefinition],
        personalization: Optional[PersonalizationSnapshot] = None,
        limit: Optional[int] = None
    ) -> List[SearchResult]:
        entries = self.index.get(catalog)
        personalized = personalization.personalized_ids if personalization else frozenset()
        results = rank_index(query, entries, personalized, limit)
        logger.debug(f"Ranked {len(results)} of {len(entries)} utilities for {query!r}")
        return results
