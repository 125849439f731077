"""Relevance scoring of one indexed utility against a query.

Weights per match kind:

    name exact          1.0
    name prefix         0.8
    name substring      0.6
    keyword == term     0.5   (once, however many keywords match)
    category == term    0.3
    description substr  0.2

The final score is the strongest single match, not a sum, so one exact name
match outranks several weak partial ones. Every field that matched at any
weight is reported for highlighting.
"""

from typing import Dict

from .indexer import normalize, query_terms
from .models import IndexedUtility, ScoreResult

NAME_EXACT = 1.0
NAME_PREFIX = 0.8
NAME_SUBSTRING = 0.6
KEYWORD_MATCH = 0.5
CATEGORY_MATCH = 0.3
DESCRIPTION_SUBSTRING = 0.2

FIELD_NAME = "name"
FIELD_KEYWORDS = "keywords"
FIELD_CATEGORY = "category"
FIELD_DESCRIPTION = "description"

NO_MATCH = ScoreResult(0.0, frozenset())


def _name_score(query: str, name: str) -> float:
    if not name:
        return 0.0
    if name == query:
        return NAME_EXACT
    if name.startswith(query):
        return NAME_PREFIX
    if query in name:
        return NAME_SUBSTRING
    return 0.0


def score(query: str, indexed: IndexedUtility) -> ScoreResult:
    """
    Score a utility for a query.

    Args:
        query: Raw user query; matching is case-insensitive
        indexed: Utility with precomputed search text

    Returns:
        ScoreResult with score in [0, 1] and the matched fields
    """
    q = normalize(query)
    if not q:
        return NO_MATCH

    terms = query_terms(q)
    fired: Dict[str, float] = {}

    name_score = _name_score(q, indexed.name)
    if name_score:
        fired[FIELD_NAME] = name_score

    if indexed.keywords:
        wanted = set(terms)
        wanted.add(q)
        if any(keyword in wanted for keyword in indexed.keywords):
            fired[FIELD_KEYWORDS] = KEYWORD_MATCH

    if indexed.category_id:
        if (
            q == indexed.category_id
            or (indexed.category_label and q == indexed.category_label)
            or indexed.category_id in terms
        ):
            fired[FIELD_CATEGORY] = CATEGORY_MATCH

    if indexed.description and q in indexed.description:
        fired[FIELD_DESCRIPTION] = DESCRIPTION_SUBSTRING

    if not fired:
        return NO_MATCH

    return ScoreResult(max(fired.values()), frozenset(fired))
