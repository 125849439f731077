"""Live-typing suggestions: matching utilities, categories and keywords."""

from typing import Iterable, List, Optional, Set

from .categories import CategoryType, get_category
from .indexer import normalize
from .models import PersonalizationSnapshot, SearchSuggestion, UtilityDefinition
from .ranker import Ranker

# Keywords this short are too generic to be hidden behind a utility name
MIN_SHADOWED_KEYWORD_LENGTH = 3


class SuggestionGenerator:
    """
    Derives a short, typed suggestion list for the current input.

    Buckets are filled in order and never repeat a text:
    1. utilities whose score is above zero, best first
    2. categories whose label starts with the query
    3. catalog keywords containing the query that no utility suggestion
       already covers
    """

    def __init__(
        self,
        ranker: Optional[Ranker] = None,
        max_suggestions: int = 8,
        max_utilities: int = 3,
        max_categories: int = 2,
        max_keywords: int = 3
    ):
        self.ranker = ranker or Ranker()
        self.max_suggestions = max_suggestions
        self.max_utilities = max_utilities
        self.max_categories = max_categories
        self.max_keywords = max_keywords

    def suggest(
        self,
        query: str,
        catalog: Iterable[UtilityDefinition],
        personalization: Optional[PersonalizationSnapshot] = None
    ) -> List[SearchSuggestion]:
        q = normalize(query)
        if not q or self.max_suggestions <= 0:
            return []

        suggestions: List[SearchSuggestion] = []
        seen_texts: Set[str] = set()

        def add(suggestion: SearchSuggestion) -> bool:
            key = normalize(suggestion.text)
            if not key or key in seen_texts:
                return False
            seen_texts.add(key)
            suggestions.append(suggestion)
            return True

        # 1. Utilities
        utility_names: List[str] = []
        ranked = self.ranker.rank(query, catalog, personalization)
        added = 0
        for result in ranked:
            if added >= self.max_utilities:
                break
            if add(SearchSuggestion.for_utility(result.utility)):
                utility_names.append(normalize(result.utility.name))
                added += 1

        # 2. Categories
        entries = self.ranker.index.get(catalog)
        present = {entry.category_id for entry in entries}
        added = 0
        for category_type in CategoryType:
            if added >= self.max_categories:
                break
            if category_type.value not in present:
                continue
            category = get_category(category_type.value)
            if normalize(category.name).startswith(q) and add(SearchSuggestion.for_category(category.name)):
                added += 1

        # 3. Keywords
        candidates = []
        seen_keywords: Set[str] = set()
        for entry in entries:
            for keyword in entry.utility.keywords or ():
                normalized = normalize(keyword)
                if not normalized or normalized in seen_keywords:
                    continue
                seen_keywords.add(normalized)
                if q not in normalized:
                    continue
                if len(normalized) >= MIN_SHADOWED_KEYWORD_LENGTH and any(
                    normalized in name for name in utility_names
                ):
                    continue
                if normalized == q:
                    rank = 0
                elif normalized.startswith(q):
                    rank = 1
                else:
                    rank = 2
                candidates.append((rank, len(candidates), keyword))

        candidates.sort()
        added = 0
        for _, _, keyword in candidates:
            if added >= self.max_keywords:
                break
            if add(SearchSuggestion.for_keyword(keyword)):
                added += 1

        return suggestions[:self.max_suggestions]


def suggest(
    query: str,
    catalog: Iterable[UtilityDefinition],
    personalization: Optional[PersonalizationSnapshot] = None
) -> List[SearchSuggestion]:
    """Suggestions with the default bucket sizes."""
    return SuggestionGenerator().suggest(query, catalog, personalization)
