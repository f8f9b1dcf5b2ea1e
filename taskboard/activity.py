"""Append-only JSON activity log.

The log is a single JSON array of activity records shared by all projects.
Appending is best effort: it runs after a store mutation has already been
written, so failures are logged and swallowed rather than raised.
"""

from __future__ import annotations

import json
import logging
import secrets
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import DEFAULT_RETENTION_CAP, DEFAULT_USER
from .models import ACTIVITY_TYPES, Activity

logger = logging.getLogger("taskboard.activity")

_REQUIRED_KEYS = ("id", "type", "timestamp")


def _generate_activity_id() -> str:
    """Millisecond timestamp plus a random suffix."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def describe_event(kind: str, project_name: str, task_text: Optional[str] = None) -> str:
    """Human-readable sentence for an activity type."""
    if kind == "task_created":
        return f'Created task "{task_text}" in {project_name}'
    if kind == "task_completed":
        return f'Completed task "{task_text}" in {project_name}'
    if kind == "task_updated":
        return f'Updated task "{task_text}" in {project_name}'
    if kind == "task_deleted":
        return f'Deleted task "{task_text}" from {project_name}'
    if kind == "project_created":
        return f"Created project {project_name}"
    if kind == "comment_added":
        if task_text:
            return f'Commented on "{task_text}" in {project_name}'
        return f"Commented on {project_name}"
    return f"{kind} in {project_name}"


def _is_record(item: Any) -> bool:
    return isinstance(item, dict) and all(isinstance(item.get(key), str) for key in _REQUIRED_KEYS)


class ActivityLog:
    """Activity records persisted in one JSON file, newest last on disk."""

    def __init__(self, path: Path | str, retention_cap: int = DEFAULT_RETENTION_CAP, default_user: str = DEFAULT_USER):
        self.path = Path(path)
        self.retention_cap = retention_cap
        self.default_user = default_user
        self._lock = threading.Lock()

    def _read_raw(self) -> List[Dict[str, Any]]:
        """Current records; a missing or corrupt file reads as empty."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Activity log {self.path} is unreadable, treating as empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Activity log {self.path} is not a list of records, treating as empty")
            return []
        records = [item for item in data if _is_record(item)]
        if len(records) != len(data):
            logger.warning(f"Activity log {self.path}: dropped {len(data) - len(records)} malformed record(s)")
        return records

    def append(
        self,
        kind: str,
        project_slug: str,
        project_name: str,
        task_id: Optional[int] = None,
        task_text: Optional[str] = None,
        description: Optional[str] = None,
        user: Optional[str] = None,
    ) -> Activity:
        """Record an event and trim the log to ``retention_cap`` entries.

        The record is returned even when it could not be persisted.
        """
        if kind not in ACTIVITY_TYPES:
            raise ValueError(f"Invalid activity type: {kind}")

        activity = Activity(
            id=_generate_activity_id(),
            type=kind,
            project_slug=project_slug,
            project_name=project_name,
            description=description or describe_event(kind, project_name, task_text),
            timestamp=_utc_timestamp(),
            user=user or self.default_user,
            task_id=task_id,
            task_text=task_text,
        )

        with self._lock:
            try:
                records = self._read_raw()
                records.append(activity.to_dict())
                records = records[-self.retention_cap:]
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(json.dumps(records, indent=2), encoding="utf-8")
            except OSError as e:
                logger.warning(f"Failed to record activity {activity.type} for '{project_slug}': {e}")

        return activity

    def recent(self, limit: int = 50) -> List[Activity]:
        """Most recent ``limit`` activities, newest first."""
        if limit <= 0:
            return []
        activities = [Activity.from_dict(item) for item in self._read_raw()]
        return list(reversed(activities[-limit:]))

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()

    # Convenience wrappers ------------------------------------------------

    def log_task_created(self, slug: str, project_name: str, task_text: str, task_id: Optional[int] = None, user: Optional[str] = None) -> Activity:
        return self.append("task_created", slug, project_name, task_id=task_id, task_text=task_text, user=user)

    def log_task_completed(self, slug: str, project_name: str, task_text: str, task_id: Optional[int] = None, user: Optional[str] = None) -> Activity:
        return self.append("task_completed", slug, project_name, task_id=task_id, task_text=task_text, user=user)

    def log_task_updated(self, slug: str, project_name: str, task_text: str, task_id: Optional[int] = None, user: Optional[str] = None) -> Activity:
        return self.append("task_updated", slug, project_name, task_id=task_id, task_text=task_text, user=user)

    def log_project_created(self, slug: str, project_name: str, user: Optional[str] = None) -> Activity:
        return self.append("project_created", slug, project_name, user=user)

    def log_comment_added(
        self,
        slug: str,
        project_name: str,
        comment: str,
        task_id: Optional[int] = None,
        task_text: Optional[str] = None,
        user: Optional[str] = None,
    ) -> Activity:
        prefix = describe_event("comment_added", project_name, task_text)
        return self.append(
            "comment_added",
            slug,
            project_name,
            task_id=task_id,
            task_text=task_text,
            description=f"{prefix}: {comment}",
            user=user,
        )
