from pathlib import Path

import pytest

from src.utils.config import PROJECT_ROOT, AcledSettings, load_config, resolve_db_path


def test_settings_from_project_config():
    settings = AcledSettings.from_config(load_config())
    assert settings.job_type == "acled_weekly_agg"
    assert settings.batch_size >= 1
    assert "Middle East" in settings.sources
    assert settings.downloads_dir is not None and settings.downloads_dir.is_absolute()


def test_settings_defaults_from_empty_config():
    settings = AcledSettings.from_config({})
    assert settings == AcledSettings()


def test_settings_reject_bad_values():
    with pytest.raises(ValueError):
        AcledSettings.from_config({"acled": {"batch_size": -5}})
    with pytest.raises(ValueError):
        AcledSettings.from_config({"acled": {"retention_weeks": 0}})


def test_settings_parse_sources_and_urls():
    settings = AcledSettings.from_config({
        "acled": {
            "sources": [" Africa ", "", "Middle East"],
            "retention_weeks": "4",
            "urls": {"Africa": "https://example.org/africa.xlsx"},
            "http": {"timeout_seconds": 10, "max_retries": 5},
        }
    })
    assert settings.sources == ["Africa", "Middle East"]
    assert settings.retention_weeks == 4
    assert settings.urls == {"Africa": "https://example.org/africa.xlsx"}
    assert (settings.http_timeout_seconds, settings.http_max_retries) == (10, 5)


def test_db_path_memory_passthrough(monkeypatch):
    monkeypatch.setattr("src.utils.config.load_dotenv", lambda: None)
    monkeypatch.setenv("ACLED_DUCKDB_PATH", ":memory:")
    assert resolve_db_path({"db": {"duckdb_path": "data/x.duckdb"}}) == ":memory:"


def test_db_path_relative_to_project_root(monkeypatch):
    monkeypatch.setattr("src.utils.config.load_dotenv", lambda: None)
    monkeypatch.delenv("ACLED_DUCKDB_PATH", raising=False)
    assert resolve_db_path({"db": {"duckdb_path": "data/x.duckdb"}}) == str(PROJECT_ROOT / "data" / "x.duckdb")


def test_db_path_missing(monkeypatch):
    monkeypatch.setattr("src.utils.config.load_dotenv", lambda: None)
    monkeypatch.delenv("ACLED_DUCKDB_PATH", raising=False)
    with pytest.raises(ValueError):
        resolve_db_path({})


def test_db_path_absolute_kept(monkeypatch, tmp_path):
    monkeypatch.setattr("src.utils.config.load_dotenv", lambda: None)
    monkeypatch.setenv("ACLED_DUCKDB_PATH", str(tmp_path / "dw.duckdb"))
    assert Path(resolve_db_path({})) == tmp_path / "dw.duckdb"
