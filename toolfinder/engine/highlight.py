"""Match highlighting for rendering results."""

from typing import List, Tuple

from .indexer import query_terms


def find_match_spans(text: str, query: str) -> List[Tuple[int, int]]:
    """
    Case-insensitive spans of `text` matched by the query.

    The whole query is tried first; when it does not occur, each term is
    matched on its own. Spans are half-open, sorted and merged.
    """
    if not text or not query or not query.strip():
        return []

    # Lowercase per character so offsets still index into `text`
    lowered = "".join(c.lower() if len(c.lower()) == 1 else c for c in text)
    whole = " ".join(query_terms(query))
    needles = [whole] if whole in lowered else query_terms(query)

    spans = []
    for needle in needles:
        start = lowered.find(needle)
        while start != -1:
            spans.append((start, start + len(needle)))
            start = lowered.find(needle, start + len(needle))

    spans.sort()
    merged: List[Tuple[int, int]] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def highlight(text: str, query: str) -> List[Tuple[str, bool]]:
    """Split text into (segment, is_match) pairs covering the whole text."""
    if not text:
        return []

    segments: List[Tuple[str, bool]] = []
    last = 0
    for start, end in find_match_spans(text, query):
        if start > last:
            segments.append((text[last:start], False))
        segments.append((text[start:end], True))
        last = end
    if last < len(text):
        segments.append((text[last:], False))
    return segments
