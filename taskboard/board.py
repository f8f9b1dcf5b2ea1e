"""Function-level entry point used by request handlers and the MCP server.

``TaskBoard`` pairs the project store with the activity log. Store
failures come back as ``None``/``False`` rather than exceptions, and every
successful mutation is followed by a best-effort activity record.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from .activity import ActivityLog
from .board_logging import log_error_with_context
from .config import StoreConfig
from .errors import TaskboardError
from .models import Activity, Project, ProjectTemplate, Task
from .parser import title_from_slug
from .queries import collect_notifications, search_tasks
from .store import ProjectStore
from .templates import get_template, list_templates, templates_by_category

logger = logging.getLogger("taskboard.board")

# Failures reported to callers as None/False instead of raised.
_REPORTED_ERRORS = (TaskboardError, OSError, ValueError)


class TaskBoard:
    """Projects, tasks and activity behind one small API."""

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        store: Optional[ProjectStore] = None,
        activity: Optional[ActivityLog] = None,
    ):
        self.config = config or StoreConfig.from_env()
        self.store = store or ProjectStore(self.config)
        self.activity = activity or ActivityLog(
            self.config.activity_log_path,
            retention_cap=self.config.retention_cap,
            default_user=self.config.default_user,
        )

    def _report(self, error: Exception, operation: str, **context: Any) -> None:
        log_error_with_context(error, {"operation": operation, **context})

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> List[Project]:
        try:
            return self.store.list_projects()
        except _REPORTED_ERRORS as e:
            self._report(e, "list_projects")
            return []

    def get_project(self, slug: str) -> Optional[Project]:
        try:
            return self.store.get_project(slug)
        except _REPORTED_ERRORS as e:
            self._report(e, "get_project", slug=slug)
            return None

    def create_project(
        self,
        name: str,
        description: str = "",
        template_id: Optional[str] = None,
        user: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Optional[Project]:
        template = None
        if template_id:
            template = get_template(template_id)
            if template is None:
                logger.warning(f"Unknown project template '{template_id}'")
                return None
        try:
            project = self.store.create_project(name, description, template=template, today=today)
        except _REPORTED_ERRORS as e:
            self._report(e, "create_project", name=name, template_id=template_id)
            return None

        self.activity.log_project_created(project.slug, project.name, user=user)
        return project

    def set_project_status(self, slug: str, status: str) -> Optional[Project]:
        try:
            return self.store.set_project_status(slug, status)
        except _REPORTED_ERRORS as e:
            self._report(e, "set_project_status", slug=slug, status=status)
            return None

    def delete_project(self, slug: str) -> bool:
        try:
            self.store.delete_project(slug)
        except _REPORTED_ERRORS as e:
            self._report(e, "delete_project", slug=slug)
            return False
        return True

    def list_templates(self) -> List[ProjectTemplate]:
        return list_templates()

    def templates_by_category(self) -> Dict[str, List[ProjectTemplate]]:
        return templates_by_category()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, slug: str, fields: Dict[str, Any], user: Optional[str] = None) -> Optional[Task]:
        try:
            task = self.store.add_task(slug, fields)
        except _REPORTED_ERRORS as e:
            self._report(e, "add_task", slug=slug)
            return None

        self.activity.log_task_created(slug, title_from_slug(slug), task.text, task_id=task.id, user=user)
        return task

    def complete_task(
        self,
        slug: str,
        task_id: int,
        expected: Optional[str] = None,
        user: Optional[str] = None,
    ) -> bool:
        try:
            task = self.store.complete_task(slug, task_id, expected=expected)
        except _REPORTED_ERRORS as e:
            self._report(e, "complete_task", slug=slug, task_id=task_id)
            return False

        self.activity.log_task_completed(slug, title_from_slug(slug), task.text, task_id=task.id, user=user)
        return True

    def update_task(
        self,
        slug: str,
        task_id: int,
        fields: Dict[str, Any],
        expected: Optional[str] = None,
        user: Optional[str] = None,
    ) -> Optional[Task]:
        try:
            task = self.store.update_task(slug, task_id, fields, expected=expected)
        except _REPORTED_ERRORS as e:
            self._report(e, "update_task", slug=slug, task_id=task_id, fields=sorted(fields))
            return None

        self.activity.log_task_updated(slug, title_from_slug(slug), task.text, task_id=task.id, user=user)
        return task

    def delete_task(
        self,
        slug: str,
        task_id: int,
        expected: Optional[str] = None,
        user: Optional[str] = None,
    ) -> bool:
        try:
            task = self.store.delete_task(slug, task_id, expected=expected)
        except _REPORTED_ERRORS as e:
            self._report(e, "delete_task", slug=slug, task_id=task_id)
            return False

        self.activity.append(
            "task_deleted", slug, title_from_slug(slug), task_id=task.id, task_text=task.text, user=user
        )
        return True

    def toggle_subtask(self, slug: str, task_id: int, subtask_id: int, user: Optional[str] = None) -> Optional[Task]:
        try:
            task = self.store.toggle_subtask(slug, task_id, subtask_id)
        except _REPORTED_ERRORS as e:
            self._report(e, "toggle_subtask", slug=slug, task_id=task_id, subtask_id=subtask_id)
            return None

        self.activity.log_task_updated(slug, title_from_slug(slug), task.text, task_id=task.id, user=user)
        return task

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    def log_event(
        self,
        kind: str,
        slug: str,
        name: str,
        text: Optional[str] = None,
        user: Optional[str] = None,
        task_id: Optional[int] = None,
    ) -> Activity:
        return self.activity.append(kind, slug, name, task_id=task_id, task_text=text, user=user)

    def add_comment(
        self,
        slug: str,
        comment: str,
        task_id: Optional[int] = None,
        user: Optional[str] = None,
    ) -> Optional[Activity]:
        """Record a comment on a project (or one of its tasks) in the activity log."""
        comment = " ".join((comment or "").split())
        if not comment:
            return None
        project = self.get_project(slug)
        if project is None:
            return None
        task_text = None
        if task_id is not None:
            task = project.get_task(task_id)
            if task is None:
                logger.warning(f"Cannot comment on missing task {task_id} in '{slug}'")
                return None
            task_text = task.text
        return self.activity.log_comment_added(
            slug, project.name, comment, task_id=task_id, task_text=task_text, user=user
        )

    def get_activity(self, limit: int = 50) -> List[Activity]:
        return self.activity.recent(limit)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search_tasks(self, query: str = "", **filters: Any) -> List[Dict[str, Any]]:
        return search_tasks(self.list_projects(), query, **filters)

    def get_notifications(self, today: Optional[date] = None, include_upcoming: bool = False) -> Dict[str, Any]:
        return collect_notifications(self.list_projects(), today=today, include_upcoming=include_upcoming)
