"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest

from feedpress.config import Config, ConfigModel, load_config, save_config


def test_defaults():
    config = ConfigModel()

    assert config.cache.window_hours == 3.0
    assert config.cache.article_limit == 100
    assert config.timeouts.preview_seconds == 60.0
    assert config.timeouts.generate_seconds == 300.0


def test_load_partial_file_fills_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("cache:\n  window_hours: 1.5\nrefresh:\n  max_concurrent: 8\n")

        config = load_config(path)

    assert config.cache.window_hours == 1.5
    assert config.cache.article_limit == 100
    assert config.refresh.max_concurrent == 8


def test_empty_file_is_all_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("")

        assert load_config(path) == ConfigModel()


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config(Path("/nonexistent/feedpress/config.yaml"))


def test_invalid_yaml():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("cache: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)


def test_generate_budget_shorter_than_preview_is_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        path.write_text("timeouts:\n  preview_seconds: 120\n  generate_seconds: 30\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)


def test_save_then_load():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "nested" / "config.yaml"
        config = ConfigModel(postgres={"host": "db.internal", "database": "news"})

        save_config(config, path)

        assert load_config(path).postgres.host == "db.internal"


def test_secrets_come_from_environment(monkeypatch):
    monkeypatch.setenv("FEEDPRESS_DB_PASSWORD", "s3cret")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "config.yaml"
        save_config(ConfigModel(), path)
        config = Config(path)

        assert config.get_db_config()["password"] == "s3cret"
        assert config.get_llm_config()["api_key"] == "sk-test"


def test_config_path_from_environment(monkeypatch):
    monkeypatch.setenv("FEEDPRESS_CONFIG", "/etc/feedpress/config.yaml")

    assert Config().config_path == Path("/etc/feedpress/config.yaml")
