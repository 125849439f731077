"""Shared fixtures for toolfinder tests."""

import pytest

from toolfinder.engine.catalog import Catalog
from toolfinder.engine.config import Config, SearchConfig
from toolfinder.engine.controller import SearchController
from toolfinder.engine.personalization import PersonalizationStore
from toolfinder.engine.recent_searches import RecentSearches
from toolfinder.engine.storage import MemoryStorage


UTILITIES = [
    {
        "id": "json-formatter",
        "name": "JSON Formatter",
        "description": "Format, validate, and minify JSON with syntax highlighting",
        "category": "developer",
        "keywords": ["json", "format", "validate"],
        "route": "/tools/json-formatter",
    },
    {
        "id": "jwt-decoder",
        "name": "JWT Decoder",
        "description": "Decode and verify JSON Web Tokens (JWT)",
        "category": "developer",
        "keywords": ["jwt", "json", "token", "decode"],
        "route": "/tools/jwt-decoder",
    },
    {
        "id": "case-converter",
        "name": "Case Converter",
        "description": "Convert text between different cases",
        "category": "text",
        "keywords": ["case", "uppercase", "lowercase"],
        "route": "/tools/case-converter",
    },
    {
        "id": "word-counter",
        "name": "Word Counter",
        "description": "Count words, characters, and reading time",
        "category": "text",
        "keywords": ["word", "count"],
        "route": "/tools/word-counter",
    },
    {
        "id": "coin-flip",
        "name": "Coin Flip",
        "description": "Flip a virtual coin for quick decisions",
        "category": "fun",
        "keywords": ["coin", "flip", "random"],
        "route": "/tools/coin-flip",
    },
    {
        "id": "dice-roller",
        "name": "Dice Roller",
        "description": "Roll virtual dice for games",
        "category": "fun",
        "keywords": ["dice", "roll", "random"],
        "route": "/tools/dice-roller",
    },
]


@pytest.fixture
def catalog():
    return Catalog.from_records(UTILITIES)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(catalog, storage):
    return PersonalizationStore(catalog, storage)


@pytest.fixture
def config():
    return Config(search=SearchConfig(debounce_ms=150))


@pytest.fixture
def controller(catalog, store, storage, config):
    c = SearchController(
        catalog,
        store,
        config=config,
        recent_searches=RecentSearches(storage)
    )
    yield c
    c.close()
