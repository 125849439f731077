"""Unit tests for catalog ranking."""

import pytest

from toolfinder.engine.catalog import Catalog
from toolfinder.engine.models import PersonalizationSnapshot
from toolfinder.engine.ranker import Ranker


QUERIES = ["j", "json", "text", "random", "fun", "de", "virtual", "JSON Formatter", "co"]


class TestRanker:
    """Test ranking, filtering and tie-breaking."""

    def test_json_query(self, catalog):
        results = Ranker().rank("json", catalog)

        assert [r.utility.id for r in results] == ["json-formatter", "jwt-decoder"]
        assert results[0].relevance_score == 0.8
        assert results[1].relevance_score == 0.5

    @pytest.mark.parametrize("query", QUERIES)
    def test_sorted_and_positive(self, catalog, query):
        results = Ranker().rank(query, catalog)

        assert all(r.relevance_score > 0 for r in results)
        scores = [r.relevance_score for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("query", ["", "  ", "\n"])
    def test_blank_query_returns_nothing(self, catalog, query):
        assert Ranker().rank(query, catalog) == []

    @pytest.mark.parametrize("query", QUERIES)
    def test_repeated_ranking_is_identical(self, catalog, query):
        ranker = Ranker()
        snapshot = PersonalizationSnapshot(recent_ids=("dice-roller",))

        first = ranker.rank(query, catalog, snapshot)
        second = ranker.rank(query, catalog, snapshot)
        assert first == second

    def test_ties_break_alphabetically(self, catalog):
        results = Ranker().rank("random", catalog)

        assert [r.utility.name for r in results] == ["Coin Flip", "Dice Roller"]
        assert results[0].relevance_score == results[1].relevance_score

    def test_ties_prefer_personalized(self, catalog):
        ranker = Ranker()

        recent = PersonalizationSnapshot(recent_ids=("dice-roller",))
        assert ranker.rank("random", catalog, recent)[0].utility.id == "dice-roller"

        favorite = PersonalizationSnapshot(favorite_ids=("dice-roller",))
        assert ranker.rank("random", catalog, favorite)[0].utility.id == "dice-roller"

    def test_featured_breaks_ties_after_personalization(self):
        catalog = Catalog.from_records([
            {"id": "alarm", "name": "Alarm", "category": "productivity"},
            {"id": "timer", "name": "Timer", "category": "productivity", "featured": True},
            {"id": "clock", "name": "Clock", "category": "productivity"},
        ])
        ranker = Ranker()

        assert [r.utility.id for r in ranker.rank("productivity", catalog)] == ["timer", "alarm", "clock"]

        snapshot = PersonalizationSnapshot(recent_ids=("clock",))
        assert [r.utility.id for r in ranker.rank("productivity", catalog, snapshot)] == [
            "clock", "timer", "alarm"
        ]

    def test_featured_never_beats_score(self):
        catalog = Catalog.from_records([
            {"id": "json", "name": "JSON Tool", "category": "developer"},
            {"id": "other", "name": "Other", "category": "developer", "keywords": ["json"], "featured": True},
        ])

        assert [r.utility.id for r in Ranker().rank("json", catalog)] == ["json", "other"]

    def test_personalization_never_beats_score(self, catalog):
        snapshot = PersonalizationSnapshot(recent_ids=("jwt-decoder",))
        results = Ranker().rank("json", catalog, snapshot)

        assert results[0].utility.id == "json-formatter"

    def test_category_query(self, catalog):
        results = Ranker().rank("text", catalog)

        assert [r.utility.id for r in results] == ["case-converter", "word-counter"]
        assert all(r.relevance_score == 0.3 for r in results)
        assert "category" in results[0].matched_fields
        assert "description" in results[0].matched_fields

    def test_limit(self, catalog):
        results = Ranker().rank("j", catalog, limit=1)
        assert len(results) == 1

    def test_rank_is_side_effect_free(self, catalog):
        before = list(catalog)
        Ranker().rank("json", catalog)
        assert list(catalog) == before

    def test_catalog_replacement_rebuilds_index(self, catalog):
        ranker = Ranker()
        ranker.rank("json", catalog)

        smaller = Catalog([u for u in catalog if u.id != "json-formatter"])
        results = ranker.rank("json", smaller)

        assert [r.utility.id for r in results] == ["jwt-decoder"]
        assert ranker.index.build_count == 2
