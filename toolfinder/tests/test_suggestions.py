"""Tests for live-typing suggestions."""

import pytest

from toolfinder.engine.catalog import Catalog
from toolfinder.engine.models import SuggestionType
from toolfinder.engine.suggestions import SuggestionGenerator, suggest


def texts(suggestions):
    return [s.text for s in suggestions]


class TestSuggestionGenerator:
    """Test bucket order, limits and deduplication."""

    def test_utilities_first(self, catalog):
        suggestions = suggest("json", catalog)

        assert texts(suggestions) == ["JSON Formatter", "JWT Decoder"]
        assert all(s.type is SuggestionType.UTILITY for s in suggestions)
        assert suggestions[0].utility.id == "json-formatter"

    def test_keyword_covered_by_utility_name_is_skipped(self, catalog):
        """'json' appears in 'JSON Formatter', so no keyword suggestion for it."""
        suggestions = suggest("json", catalog)
        assert not any(s.type is SuggestionType.KEYWORD for s in suggestions)

    def test_mixed_buckets(self, catalog):
        suggestions = suggest("de", catalog)

        assert [(s.type, s.text) for s in suggestions] == [
            (SuggestionType.UTILITY, "JWT Decoder"),
            (SuggestionType.UTILITY, "Coin Flip"),
            (SuggestionType.CATEGORY, "Developer Tools"),
        ]

    def test_category_by_label_prefix(self, catalog):
        suggestions = suggest("fun", catalog)

        assert texts(suggestions) == ["Coin Flip", "Dice Roller", "Fun Tools"]
        assert suggestions[-1].type is SuggestionType.CATEGORY
        assert suggestions[-1].utility is None

    def test_keyword_only(self, catalog):
        suggestions = suggest("rand", catalog)

        assert len(suggestions) == 1
        assert suggestions[0].type is SuggestionType.KEYWORD
        assert suggestions[0].text == "random"

    def test_keywords_are_distinct(self, catalog):
        """'random' is a keyword of two utilities but is suggested once."""
        suggestions = suggest("rand", catalog)
        assert texts(suggestions).count("random") == 1

    @pytest.mark.parametrize("query", ["", "   "])
    def test_blank_query(self, catalog, query):
        assert suggest(query, catalog) == []

    def test_no_match(self, catalog):
        assert suggest("zzzz", catalog) == []

    def test_bucket_limits(self):
        records = [
            {"id": f"tool-{i}", "name": f"Tool {i}", "category": "text",
             "keywords": [f"toolkey{i}"]}
            for i in range(10)
        ]
        catalog = Catalog.from_records(records)

        suggestions = suggest("tool", catalog)

        utilities = [s for s in suggestions if s.type is SuggestionType.UTILITY]
        keywords = [s for s in suggestions if s.type is SuggestionType.KEYWORD]
        assert len(utilities) == 3
        assert len(keywords) == 3
        assert len(suggestions) <= 8

    def test_overall_cap(self, catalog):
        generator = SuggestionGenerator(max_suggestions=2)
        assert len(generator.suggest("fun", catalog)) == 2

    def test_no_duplicate_texts_across_buckets(self):
        catalog = Catalog.from_records([
            {"id": "counter", "name": "Counter", "category": "text",
             "keywords": ["text tools", "count"]},
        ])

        suggestions = suggest("text", catalog)

        folded = [s.text.casefold() for s in suggestions]
        assert len(folded) == len(set(folded))
        assert folded.count("text tools") == 1
        assert suggestions[-1].type is SuggestionType.CATEGORY

    def test_personalization_breaks_utility_ties(self, catalog):
        from toolfinder.engine.models import PersonalizationSnapshot

        snapshot = PersonalizationSnapshot(favorite_ids=("dice-roller",))
        suggestions = suggest("fun", catalog, snapshot)

        assert texts(suggestions)[:2] == ["Dice Roller", "Coin Flip"]

    def test_short_keyword_not_shadowed(self):
        """Two-letter keywords stay even when a utility name contains them."""
        catalog = Catalog.from_records([
            {"id": "ip", "name": "IP Lookup", "category": "developer", "keywords": ["ip", "network"]},
        ])

        suggestions = suggest("ip", catalog)

        assert [(s.type, s.text) for s in suggestions] == [
            (SuggestionType.UTILITY, "IP Lookup"),
            (SuggestionType.KEYWORD, "ip"),
        ]
