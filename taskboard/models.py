"""Data models for the taskboard.

This module contains the core data structures: projects and their tasks as
parsed from markdown documents, activity records, and project templates.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import TaskValidationError

PRIORITIES = ("HIGH", "MEDIUM", "LOW")
DEFAULT_PRIORITY = "MEDIUM"
UNASSIGNED = "UNASSIGNED"

PROJECT_STATUSES = ("active", "completed")

ACTIVITY_TYPES = (
    "task_created",
    "task_completed",
    "task_updated",
    "task_deleted",
    "project_created",
    "comment_added",
)

# Alternate spellings accepted in task field dictionaries.
FIELD_ALIASES: Dict[str, str] = {
    "dueDate": "due_date",
    "due": "due_date",
    "completedDate": "completed_date",
    "assignee": "assigned",
    "desc": "description",
}

TASK_FIELDS = (
    "text",
    "priority",
    "assigned",
    "due_date",
    "tags",
    "description",
    "completed",
    "completed_date",
    "subtasks",
)

_ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_task_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Map aliased keys onto canonical task field names.

    When both an alias and its canonical key are supplied, the canonical
    value wins. Unknown keys are rejected.
    """
    normalized: Dict[str, Any] = {}
    unknown: List[str] = []
    for key, value in fields.items():
        canonical = FIELD_ALIASES.get(key, key)
        if canonical not in TASK_FIELDS:
            unknown.append(key)
            continue
        if key != canonical and canonical in fields:
            continue
        normalized[canonical] = value
    if unknown:
        raise TaskValidationError([f"Unknown task field: {key}" for key in sorted(unknown)])
    return normalized


def clean_tags(tags: Optional[Any]) -> List[str]:
    """Strip, drop empties and de-duplicate tags, preserving first-seen order."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    cleaned: List[str] = []
    for tag in tags:
        value = str(tag).strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def is_single_line(value: str) -> bool:
    """True when ``value`` holds no character that ``str.splitlines`` breaks on."""
    return not value or value.splitlines() == [value]


def is_iso_date(value: str) -> bool:
    if not _ISO_DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


@dataclass(slots=True)
class SubTask:
    """A checklist item nested under a task."""

    id: int
    text: str
    completed: bool = False
    line_no: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: Any, position: int = 0) -> "SubTask":
        if isinstance(data, str):
            return cls(id=position, text=data)
        return cls(
            id=data.get("id", position),
            text=data["text"],
            completed=bool(data.get("completed", False)),
        )


@dataclass(slots=True)
class Task:
    """One task line of a project document.

    ``id`` is the 1-based position of the task in its document and is
    recomputed on every parse. ``line_no`` and ``source`` record where and
    how the line was read so the store can target it on write.
    """

    id: int
    text: str
    priority: str = DEFAULT_PRIORITY
    assigned: str = UNASSIGNED
    due_date: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    description: Optional[str] = None
    completed: bool = False
    completed_date: Optional[str] = None
    subtasks: List[SubTask] = field(default_factory=list)
    line_no: int = -1
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "text": self.text,
            "priority": self.priority,
            "assigned": self.assigned,
            "due_date": self.due_date,
            "tags": list(self.tags),
            "description": self.description,
            "completed": self.completed,
            "completed_date": self.completed_date,
            "subtasks": [subtask.to_dict() for subtask in self.subtasks],
        }

    @classmethod
    def from_fields(cls, fields: Dict[str, Any], task_id: int = 0) -> "Task":
        """Build a task from a (possibly aliased) field dictionary."""
        data = normalize_task_fields(fields)
        task = cls(id=task_id, text=str(data.get("text") or "").strip())
        task.apply(data)
        return task

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create from dictionary representation."""
        payload = {key: value for key, value in data.items() if key != "id"}
        return cls.from_fields(payload, task_id=data.get("id", 0))

    def apply(self, fields: Dict[str, Any]) -> None:
        """Merge canonical fields over this task.

        ``None`` or an empty string clears an optional field.
        """
        if "text" in fields:
            self.text = str(fields["text"] or "").strip()
        if "priority" in fields:
            self.priority = str(fields["priority"] or DEFAULT_PRIORITY).strip().upper()
        if "assigned" in fields:
            self.assigned = str(fields["assigned"] or "").strip() or UNASSIGNED
        if "due_date" in fields:
            self.due_date = str(fields["due_date"]).strip() if fields["due_date"] else None
        if "tags" in fields:
            self.tags = clean_tags(fields["tags"])
        if "description" in fields:
            self.description = str(fields["description"]) if fields["description"] else None
        if "completed" in fields:
            self.completed = bool(fields["completed"])
        if "completed_date" in fields:
            value = fields["completed_date"]
            self.completed_date = str(value).strip() if value else None
        if "subtasks" in fields:
            self.subtasks = [
                SubTask.from_dict(item, position)
                for position, item in enumerate(fields["subtasks"] or [], start=1)
            ]

    def validate(self) -> List[str]:
        """Validate task data and return any issues."""
        issues = []

        if not self.text:
            issues.append("Task text is required")
        if self.priority not in PRIORITIES:
            issues.append(f"Invalid priority: {self.priority}")
        if self.due_date is not None and not is_iso_date(self.due_date):
            issues.append(f"Due date must be YYYY-MM-DD, got: {self.due_date}")
        if self.completed_date is not None and not is_iso_date(self.completed_date):
            issues.append(f"Completion date must be YYYY-MM-DD, got: {self.completed_date}")

        single_line = {
            "text": self.text,
            "assigned": self.assigned,
            "description": self.description or "",
        }
        for name, value in single_line.items():
            if not is_single_line(value):
                issues.append(f"Field '{name}' must fit on a single line")
        for tag in self.tags:
            if not is_single_line(tag):
                issues.append(f"Tag '{tag.strip()}' must fit on a single line")
        for subtask in self.subtasks:
            if not subtask.text.strip():
                issues.append("Subtask text is required")
            elif not is_single_line(subtask.text):
                issues.append("Subtask text must fit on a single line")

        return issues

    def is_overdue(self, today: Optional[date] = None) -> bool:
        if self.completed or not self.due_date or not is_iso_date(self.due_date):
            return False
        return date.fromisoformat(self.due_date) < (today or date.today())


@dataclass(slots=True)
class Project:
    """A project document parsed into memory."""

    name: str
    slug: str
    description: str = ""
    status: str = "active"
    created: str = ""
    tasks: List[Task] = field(default_factory=list)
    path: Optional[Path] = None

    def to_dict(self, include_tasks: bool = True) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = {
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "status": self.status,
            "created": self.created,
            "summary": self.summary(),
        }
        if include_tasks:
            data["tasks"] = [task.to_dict() for task in self.tasks]
        return data

    def get_task(self, task_id: int) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    @property
    def pending_tasks(self) -> List[Task]:
        return [task for task in self.tasks if not task.completed]

    @property
    def completed_tasks(self) -> List[Task]:
        return [task for task in self.tasks if task.completed]

    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.tasks),
            "pending": len(self.pending_tasks),
            "completed": len(self.completed_tasks),
        }


@dataclass(slots=True)
class Activity:
    """A single entry of the activity log. Never mutated after creation."""

    id: str
    type: str
    project_slug: str
    project_name: str
    description: str
    timestamp: str
    user: str
    task_id: Optional[int] = None
    task_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted (camelCase) representation."""
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "projectSlug": self.project_slug,
            "projectName": self.project_name,
            "description": self.description,
            "timestamp": self.timestamp,
            "user": self.user,
        }
        if self.task_id is not None:
            data["taskId"] = self.task_id
        if self.task_text is not None:
            data["taskText"] = self.task_text
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        """Create from the persisted representation."""
        return cls(
            id=data["id"],
            type=data["type"],
            project_slug=data.get("projectSlug", ""),
            project_name=data.get("projectName", ""),
            description=data.get("description", ""),
            timestamp=data["timestamp"],
            user=data.get("user", ""),
            task_id=data.get("taskId"),
            task_text=data.get("taskText"),
        )

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))


@dataclass(slots=True)
class TaskBlueprint:
    """Template entry used to seed a task when a project is created."""

    text: str
    priority: str = DEFAULT_PRIORITY
    assigned: str = UNASSIGNED
    due_offset_days: Optional[int] = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "priority": self.priority,
            "assigned": self.assigned,
            "due_offset_days": self.due_offset_days,
            "tags": list(self.tags),
        }

    def to_task(self, created: date, task_id: int = 0) -> Task:
        due = None
        if self.due_offset_days is not None:
            due = (created + timedelta(days=self.due_offset_days)).isoformat()
        return Task(
            id=task_id,
            text=self.text,
            priority=self.priority,
            assigned=self.assigned,
            due_date=due,
            tags=list(self.tags),
        )


@dataclass(slots=True)
class ProjectTemplate:
    """Read-only recipe for a new project's initial tasks."""

    id: str
    name: str
    description: str
    category: str
    tasks: List[TaskBlueprint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tasks": [blueprint.to_dict() for blueprint in self.tasks],
        }

    def build_tasks(self, created: date) -> List[Task]:
        return [
            blueprint.to_task(created, task_id=position)
            for position, blueprint in enumerate(self.tasks, start=1)
        ]
