"""Taskboard - markdown-backed project and task management core."""

from .activity import ActivityLog
from .board import TaskBoard
from .config import StoreConfig
from .errors import (
    MalformedDocumentError,
    NotFoundError,
    ProjectExistsError,
    ProjectNotFoundError,
    StaleMatchError,
    TaskboardError,
    TaskNotFoundError,
    TaskStateError,
    TaskValidationError,
)
from .models import Activity, Project, ProjectTemplate, SubTask, Task, TaskBlueprint
from .store import ProjectStore

__version__ = "0.1.0"

__all__ = [
    "Activity",
    "ActivityLog",
    "MalformedDocumentError",
    "NotFoundError",
    "Project",
    "ProjectExistsError",
    "ProjectNotFoundError",
    "ProjectStore",
    "ProjectTemplate",
    "StaleMatchError",
    "StoreConfig",
    "SubTask",
    "Task",
    "TaskBlueprint",
    "TaskBoard",
    "TaskboardError",
    "TaskNotFoundError",
    "TaskStateError",
    "TaskValidationError",
]
