"""Exception types raised by the taskboard store.

The store raises these; the board facade turns them into ``None``/``False``
results for its callers.
"""

from __future__ import annotations


class TaskboardError(Exception):
    """Base class for all taskboard failures."""


class NotFoundError(TaskboardError):
    """A project slug or task id did not resolve."""


class ProjectNotFoundError(NotFoundError):
    def __init__(self, slug: str):
        super().__init__(f"Project '{slug}' not found.")
        self.slug = slug


class TaskNotFoundError(NotFoundError):
    def __init__(self, slug: str, task_id: int):
        super().__init__(f"Task {task_id} not found in project '{slug}'.")
        self.slug = slug
        self.task_id = task_id


class StaleMatchError(TaskboardError):
    """The on-disk line no longer matches what the caller (or the grammar) expects."""

    def __init__(self, slug: str, task_id: int, reason: str):
        super().__init__(f"Task {task_id} in project '{slug}' is stale: {reason}")
        self.slug = slug
        self.task_id = task_id
        self.reason = reason


class ProjectExistsError(TaskboardError):
    def __init__(self, slug: str):
        super().__init__(f"Project '{slug}' already exists.")
        self.slug = slug


class TaskStateError(TaskboardError):
    """The requested transition is not valid for the task's current state."""


class MalformedDocumentError(TaskboardError):
    """A project document lacks a structural marker the store relies on."""


class TaskValidationError(TaskboardError, ValueError):
    """Task fields failed validation."""

    def __init__(self, issues):
        self.issues = list(issues)
        super().__init__("; ".join(self.issues))
