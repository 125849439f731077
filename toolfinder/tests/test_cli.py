"""Tests for the command line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from toolfinder.cli.tf import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def obj(controller):
    return {"controller": controller}


class TestSearchCommands:

    def test_search(self, runner, obj):
        result = runner.invoke(cli, ["search", "json"], obj=obj)

        assert result.exit_code == 0
        assert "Search Results" in result.output
        assert "Formatter" in result.output
        assert obj["controller"].recent_searches.get() == ["json"]

    def test_search_without_results(self, runner, obj):
        result = runner.invoke(cli, ["search", "zzzz"], obj=obj)

        assert result.exit_code == 0
        assert "No results found" in result.output

    def test_suggest(self, runner, obj):
        result = runner.invoke(cli, ["suggest", "rand"], obj=obj)

        assert result.exit_code == 0
        assert "KEYWORD: random" in result.output

    def test_categories(self, runner, obj):
        result = runner.invoke(cli, ["categories"], obj=obj)

        assert result.exit_code == 0
        assert "Developer Tools" in result.output


class TestPersonalizationCommands:

    def test_use_and_recent(self, runner, obj):
        result = runner.invoke(cli, ["use", "coin-flip"], obj=obj)
        assert result.exit_code == 0
        assert "/tools/coin-flip" in result.output

        result = runner.invoke(cli, ["recent"], obj=obj)
        assert result.exit_code == 0
        assert "Coin Flip" in result.output
        assert "Just now" in result.output

    def test_unknown_utility(self, runner, obj):
        result = runner.invoke(cli, ["use", "nope"], obj=obj)

        assert result.exit_code == 1
        assert "Unknown utility" in result.output

    def test_favorite_toggle(self, runner, obj):
        result = runner.invoke(cli, ["favorite", "dice-roller"], obj=obj)
        assert "Added Dice Roller" in result.output

        result = runner.invoke(cli, ["favorites"], obj=obj)
        assert "Dice Roller" in result.output

        result = runner.invoke(cli, ["favorite", "dice-roller"], obj=obj)
        assert "Removed Dice Roller" in result.output

        result = runner.invoke(cli, ["favorites"], obj=obj)
        assert "No favorites yet" in result.output

    def test_history(self, runner, obj):
        runner.invoke(cli, ["search", "regex"], obj=obj)
        runner.invoke(cli, ["use", "word-counter"], obj=obj)

        result = runner.invoke(cli, ["history", "searches"], obj=obj)
        assert "regex" in result.output

        result = runner.invoke(cli, ["history", "clear", "--yes"], obj=obj)
        assert result.exit_code == 0
        assert "History cleared" in result.output

        assert obj["controller"].recently_used == []
        result = runner.invoke(cli, ["history", "searches"], obj=obj)
        assert "No recent searches" in result.output


def test_verbose_search_reports_settled_timing(runner, tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({"storage": {"enabled": False}}))

    obj = {}
    result = runner.invoke(cli, ["-v", "-c", str(config_path), "search", "json"], obj=obj)

    assert result.exit_code == 0
    assert "'json' settled in" in result.output
    stats = obj["controller"].event_bus.get_stats()
    assert stats["processed"] >= 1
    assert "dropped" not in stats


def test_quiet_search_has_no_event_bus(runner, tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({"storage": {"enabled": False}}))

    obj = {}
    result = runner.invoke(cli, ["-c", str(config_path), "search", "json"], obj=obj)

    assert result.exit_code == 0
    assert "settled in" not in result.output
    assert obj["controller"].event_bus is None


def test_corrupt_storage_file_is_repaired(runner, tmp_path):
    storage_path = tmp_path / "storage.json"
    storage_path.write_text("{not json")
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({"storage": {"path": str(storage_path)}}))

    first = runner.invoke(cli, ["-c", str(config_path), "favorite", "coin-flip"], obj={})
    second = runner.invoke(cli, ["-c", str(config_path), "favorite", "coin-flip"], obj={})

    assert first.exit_code == 0
    assert "Added Coin Flip" in first.output
    assert "Removed Coin Flip" in second.output
    assert "memory only" not in second.output
    assert "toolfinder.preferences" in json.loads(storage_path.read_text())


def test_missing_catalog_file(runner, tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({
        "catalog_path": str(tmp_path / "missing.yaml"),
        "storage": {"enabled": False},
    }))

    result = runner.invoke(cli, ["-c", str(config_path), "categories"], obj={})

    assert result.exit_code == 1
    assert "Cannot load catalog" in result.output
