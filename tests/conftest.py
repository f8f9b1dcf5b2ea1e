"""Shared fixtures for taskboard tests."""

from datetime import date

import pytest

from taskboard.activity import ActivityLog
from taskboard.board import TaskBoard
from taskboard.board_logging import ObservabilityHooks
from taskboard.config import StoreConfig
from taskboard.parser import render_project
from taskboard.store import ProjectStore


@pytest.fixture
def config(tmp_path):
    """Store configuration rooted in a temporary directory."""
    return StoreConfig(base_directory=tmp_path / "projects", retention_cap=500)


@pytest.fixture
def hooks():
    return ObservabilityHooks()


@pytest.fixture
def store(config, hooks):
    return ProjectStore(config, hooks=hooks)


@pytest.fixture
def activity_log(config):
    return ActivityLog(config.activity_log_path, retention_cap=config.retention_cap)


@pytest.fixture
def board(config, store, activity_log):
    return TaskBoard(config, store=store, activity=activity_log)


@pytest.fixture
def write_project(config):
    """Write a raw project document into the active collection and return its path."""

    def _write(slug, body=None, name="Demo", directory=None):
        target = directory or config.active_dir
        target.mkdir(parents=True, exist_ok=True)
        path = target / f"{slug}.md"
        text = body if body is not None else render_project(name, "Demo project", date(2025, 1, 1))
        path.write_text(text, encoding="utf-8")
        return path

    return _write
