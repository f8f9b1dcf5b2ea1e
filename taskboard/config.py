"""Configuration for the taskboard store and activity log."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

DEFAULT_RETENTION_CAP = 500
DEFAULT_USER = "system"


def _default_base_directory() -> Path:
    return Path.home() / "dev" / "projects"


@dataclass(slots=True)
class StoreConfig:
    """Locations and limits injected into the store at construction."""

    base_directory: Path
    activity_log_path: Optional[Path] = None
    retention_cap: int = DEFAULT_RETENTION_CAP
    default_user: str = DEFAULT_USER

    BASE_DIR_ENV = "TASKBOARD_PROJECTS_DIR"
    ACTIVITY_LOG_ENV = "TASKBOARD_ACTIVITY_LOG"
    RETENTION_ENV = "TASKBOARD_ACTIVITY_RETENTION"
    USER_ENV = "TASKBOARD_USER"

    def __post_init__(self) -> None:
        self.base_directory = Path(self.base_directory).expanduser().resolve()
        if self.activity_log_path is None:
            self.activity_log_path = self.base_directory / "activity.json"
        else:
            self.activity_log_path = Path(self.activity_log_path).expanduser().resolve()
        if self.retention_cap < 1:
            raise ValueError(f"retention_cap must be positive, got: {self.retention_cap}")

    @property
    def active_dir(self) -> Path:
        return self.base_directory / "active"

    @property
    def completed_dir(self) -> Path:
        return self.base_directory / "completed"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoreConfig":
        """Build a config from ``TASKBOARD_*`` environment variables."""
        env = os.environ if environ is None else environ

        base = env.get(cls.BASE_DIR_ENV)
        log_path = env.get(cls.ACTIVITY_LOG_ENV)
        retention_raw = env.get(cls.RETENTION_ENV)
        user = env.get(cls.USER_ENV)

        retention = DEFAULT_RETENTION_CAP
        if retention_raw:
            try:
                retention = int(retention_raw)
            except ValueError:
                raise ValueError(
                    f"Environment variable {cls.RETENTION_ENV} must be an integer, got '{retention_raw}'."
                )

        return cls(
            base_directory=Path(base) if base else _default_base_directory(),
            activity_log_path=Path(log_path) if log_path else None,
            retention_cap=retention,
            default_user=user or DEFAULT_USER,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_directory": str(self.base_directory),
            "activity_log_path": str(self.activity_log_path),
            "retention_cap": self.retention_cap,
            "default_user": self.default_user,
        }
