"""Tests for project root detection and environment-driven settings."""

from __future__ import annotations

from inspection_insights.settings import config as settings_config


def test_detect_project_root_prefers_primary_env(monkeypatch, tmp_path):
    candidate = (tmp_path / "primary-root").resolve()
    candidate.mkdir()
    monkeypatch.setenv("INSIGHTS_PROJECT_ROOT", str(candidate))
    monkeypatch.delenv("INSIGHTS_RUNTIME__PROJECT_ROOT", raising=False)

    resolved = settings_config._detect_project_root()

    assert resolved == candidate


def test_detect_project_root_falls_back_to_runtime_env(monkeypatch, tmp_path):
    candidate = (tmp_path / "runtime-root").resolve()
    candidate.mkdir()
    monkeypatch.delenv("INSIGHTS_PROJECT_ROOT", raising=False)
    monkeypatch.setenv("INSIGHTS_RUNTIME__PROJECT_ROOT", str(candidate))

    resolved = settings_config._detect_project_root()

    assert resolved == candidate


def test_detect_project_root_ignores_missing_directories(monkeypatch, tmp_path):
    monkeypatch.setenv("INSIGHTS_PROJECT_ROOT", str(tmp_path / "does-not-exist"))
    monkeypatch.delenv("INSIGHTS_RUNTIME__PROJECT_ROOT", raising=False)

    resolved = settings_config._detect_project_root()

    assert (resolved / "src" / "inspection_insights").is_dir()


def test_settings_read_nested_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("INSIGHTS_ANALYTICS__BATCH_SIZE", "7")
    monkeypatch.setenv("INSIGHTS_RUNTIME__PROJECT_ROOT", str(tmp_path))

    settings = settings_config.reload_settings()

    assert settings.analytics.batch_size == 7
    assert settings.analytics.top_n == 5
    assert settings.search.debounce_ms == 300
    assert settings.data_dir == tmp_path / "data"


def test_relative_data_dir_resolves_against_project_root(monkeypatch, tmp_path):
    monkeypatch.setenv("INSIGHTS_RUNTIME__PROJECT_ROOT", str(tmp_path))
    monkeypatch.setenv("INSIGHTS_DATA_DIR", "snapshots")

    settings = settings_config.reload_settings()

    assert settings.data_dir == (tmp_path / "snapshots").resolve()
