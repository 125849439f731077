"""Data models for the toolfinder search engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class UtilityDefinition:
    """A single utility in the catalog. Owned by the catalog, never mutated."""
    id: str
    name: str = ""
    description: str = ""
    category: str = ""
    keywords: Tuple[str, ...] = ()
    route: str = ""
    featured: bool = False


@dataclass(frozen=True)
class CategoryDefinition:
    """A category from the closed category set."""
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class IndexedUtility:
    """
    A utility with its searchable text precomputed.

    Strings are lowercased with whitespace collapsed.
    """
    utility: UtilityDefinition
    name: str
    description: str
    keywords: Tuple[str, ...]
    category_id: str
    category_label: str


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one utility against a query."""
    score: float
    matched_fields: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class SearchResult:
    """Individual ranked search result."""
    utility: UtilityDefinition
    relevance_score: float
    matched_fields: FrozenSet[str] = frozenset()


class SuggestionType(Enum):
    """Kinds of live-typing suggestions."""
    UTILITY = "utility"
    CATEGORY = "category"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class SearchSuggestion:
    """
    A typed suggestion shown while the user types.
    Only UTILITY suggestions carry the utility they point at.
    """
    type: SuggestionType
    text: str
    utility: Optional[UtilityDefinition] = None

    @classmethod
    def for_utility(cls, utility: UtilityDefinition) -> "SearchSuggestion":
        return cls(SuggestionType.UTILITY, utility.name, utility)

    @classmethod
    def for_category(cls, label: str) -> "SearchSuggestion":
        return cls(SuggestionType.CATEGORY, label)

    @classmethod
    def for_keyword(cls, keyword: str) -> "SearchSuggestion":
        return cls(SuggestionType.KEYWORD, keyword)


@dataclass
class RecentEntry:
    """One entry of the recently-used list."""
    utility_id: str
    last_used_at: datetime
    use_count: int = 1

    def to_dict(self) -> dict:
        return {
            "utilityId": self.utility_id,
            "lastUsedAt": self.last_used_at.isoformat(),
            "useCount": self.use_count,
        }


@dataclass
class PersonalizationSnapshot:
    """Read-only view of recents and favorites used for tie-breaking."""
    recent_ids: Tuple[str, ...] = ()
    favorite_ids: Tuple[str, ...] = ()
    personalized_ids: FrozenSet[str] = field(init=False)

    def __post_init__(self):
        self.personalized_ids = frozenset(self.recent_ids) | frozenset(self.favorite_ids)
