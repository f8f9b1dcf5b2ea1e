"""Unit tests for store configuration."""

from pathlib import Path

import pytest

from taskboard.config import DEFAULT_RETENTION_CAP, StoreConfig


class TestStoreConfig:
    """Test cases for StoreConfig."""

    def test_defaults_derive_from_base_directory(self, tmp_path):
        config = StoreConfig(base_directory=tmp_path)

        assert config.base_directory == tmp_path.resolve()
        assert config.activity_log_path == tmp_path.resolve() / "activity.json"
        assert config.active_dir == tmp_path.resolve() / "active"
        assert config.completed_dir == tmp_path.resolve() / "completed"
        assert config.retention_cap == DEFAULT_RETENTION_CAP
        assert config.default_user == "system"

    def test_string_paths_are_accepted(self, tmp_path):
        config = StoreConfig(base_directory=str(tmp_path), activity_log_path=str(tmp_path / "log.json"))

        assert isinstance(config.base_directory, Path)
        assert config.activity_log_path == (tmp_path / "log.json").resolve()

    def test_retention_must_be_positive(self, tmp_path):
        with pytest.raises(ValueError):
            StoreConfig(base_directory=tmp_path, retention_cap=0)

    def test_to_dict(self, tmp_path):
        data = StoreConfig(base_directory=tmp_path, retention_cap=10).to_dict()

        assert data["base_directory"] == str(tmp_path.resolve())
        assert data["retention_cap"] == 10


class TestFromEnv:
    """Test cases for environment-driven configuration."""

    def test_reads_all_variables(self, tmp_path):
        config = StoreConfig.from_env({
            "TASKBOARD_PROJECTS_DIR": str(tmp_path),
            "TASKBOARD_ACTIVITY_LOG": str(tmp_path / "feed.json"),
            "TASKBOARD_ACTIVITY_RETENTION": "25",
            "TASKBOARD_USER": "ci-bot",
        })

        assert config.base_directory == tmp_path.resolve()
        assert config.activity_log_path == (tmp_path / "feed.json").resolve()
        assert config.retention_cap == 25
        assert config.default_user == "ci-bot"

    def test_defaults_when_unset(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = StoreConfig.from_env({})

        assert config.base_directory == (tmp_path / "dev" / "projects").resolve()
        assert config.retention_cap == DEFAULT_RETENTION_CAP

    def test_os_environ_is_used_by_default(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TASKBOARD_PROJECTS_DIR", str(tmp_path))
        assert StoreConfig.from_env().base_directory == tmp_path.resolve()

    def test_invalid_retention(self, tmp_path):
        with pytest.raises(ValueError):
            StoreConfig.from_env({"TASKBOARD_PROJECTS_DIR": str(tmp_path), "TASKBOARD_ACTIVITY_RETENTION": "many"})
