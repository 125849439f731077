"""Tests for match highlighting."""

from toolfinder.engine.highlight import find_match_spans, highlight


def test_whole_query_match():
    assert find_match_spans("JSON Formatter", "json") == [(0, 4)]
    assert highlight("JSON Formatter", "json") == [("JSON", True), (" Formatter", False)]


def test_repeated_matches():
    assert find_match_spans("Decode and decode", "decode") == [(0, 6), (11, 17)]


def test_falls_back_to_terms():
    """Terms are matched separately when the phrase does not occur."""
    segments = highlight("Decode JSON Web Tokens", "json decode")

    assert [s for s, is_match in segments if is_match] == ["Decode", "JSON"]
    assert "".join(s for s, _ in segments) == "Decode JSON Web Tokens"


def test_overlapping_spans_merge():
    assert find_match_spans("formatter", "form format") == [(0, 6)]


def test_offsets_survive_length_changing_lowercase():
    """'İ'.lower() is two characters; spans must still point into the original."""
    assert highlight("İstanbul", "stan") == [("İ", False), ("stan", True), ("bul", False)]
    assert highlight("Straße İ", "straße") == [("Straße", True), (" İ", False)]


def test_no_query_or_no_match():
    assert highlight("Coin Flip", "") == [("Coin Flip", False)]
    assert highlight("Coin Flip", "zzz") == [("Coin Flip", False)]
    assert highlight("", "coin") == []
