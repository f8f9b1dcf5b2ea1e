"""Markdown-backed project store.

Each project is one markdown document under ``<base>/active`` or
``<base>/completed``. Every mutation is a full read, parse, line splice and
rewrite of a single document, run under a per-slug lock. Lines keep their
own endings, so CRLF documents stay CRLF.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .board_logging import (
    ObservabilityHooks,
    log_operation,
    log_performance,
    observability_hooks,
)
from .config import StoreConfig
from .errors import (
    MalformedDocumentError,
    NotFoundError,
    ProjectExistsError,
    ProjectNotFoundError,
    StaleMatchError,
    TaskNotFoundError,
    TaskStateError,
    TaskValidationError,
)
from .grammar import encode_block, encode_subtask, encode_task, is_canonical
from .models import PROJECT_STATUSES, Project, ProjectTemplate, Task, normalize_task_fields
from .parser import (
    TASKS_MARKER,
    document_newline,
    find_marker,
    line_ending,
    parse_project,
    render_project,
    replace_status,
    slugify,
)

logger = logging.getLogger("taskboard.store")

_UNSAFE_SLUG_CHARS = ("/", "\\", "\0")


def is_valid_slug(slug: str) -> bool:
    """True when ``slug`` names a plain, non-hidden file stem."""
    if not slug or slug.startswith(".") or slug != slug.strip():
        return False
    if any(char in slug for char in _UNSAFE_SLUG_CHARS):
        return False
    return slug.splitlines() == [slug]


def read_document(path: Path) -> str:
    # newline="" keeps line endings exactly as they are on disk.
    with path.open(encoding="utf-8", newline="") as handle:
        return handle.read()


def write_document(path: Path, text: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(text)


def join_lines(lines: List[str], original: str) -> str:
    """Join lines that carry their own endings back into a document.

    New lines (and a former last line that is no longer last) get the
    document's newline. The original trailing-newline convention is kept.
    """
    newline = document_newline(original)
    out = [line if line_ending(line) else line + newline for line in lines]
    if out and original and not line_ending(original.splitlines(keepends=True)[-1]):
        out[-1] = out[-1][: len(out[-1]) - len(line_ending(out[-1]))]
    return "".join(out)


def _replace_line(lines: List[str], index: int, content: str) -> None:
    lines[index] = content + line_ending(lines[index])


class ProjectStore:
    """Read-modify-write access to project documents."""

    def __init__(self, config: StoreConfig, hooks: Optional[ObservabilityHooks] = None):
        self.config = config
        self.hooks = hooks or observability_hooks
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Document lookup
    # ------------------------------------------------------------------

    def _collection_dir(self, status: str) -> Path:
        return self.config.completed_dir if status == "completed" else self.config.active_dir

    def _check_slug(self, slug: str) -> None:
        # Slugs double as file names; anything that could leave the collection is rejected.
        if not is_valid_slug(slug):
            raise ProjectNotFoundError(slug)

    def _find_document(self, slug: str) -> Optional[Path]:
        self._check_slug(slug)
        for directory in (self.config.active_dir, self.config.completed_dir):
            path = directory / f"{slug}.md"
            if path.is_file():
                return path
        return None

    def _lock(self, slug: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(slug, threading.Lock())

    def _load_active(self, slug: str) -> Tuple[Path, str, Project]:
        self._check_slug(slug)
        path = self.config.active_dir / f"{slug}.md"
        if not path.is_file():
            raise ProjectNotFoundError(slug)
        text = read_document(path)
        return path, text, parse_project(text, slug, path=path)

    @staticmethod
    def _commit(
        path: Path,
        slug: str,
        lines: List[str],
        original: str,
        line_no: Optional[int] = None,
    ) -> Optional[Task]:
        """Write the edited document once the task at ``line_no`` parses back from it.

        When the check fails the file is not touched.
        """
        text = join_lines(lines, original)
        task = None
        if line_no is not None:
            project = parse_project(text, slug, path=path)
            task = next((item for item in project.tasks if item.line_no == line_no), None)
            if task is None:
                raise MalformedDocumentError(f"Task at line {line_no + 1} of '{slug}' would not parse back.")
        write_document(path, text)
        return task

    def _locate(self, project: Project, task_id: int, expected: Optional[str]) -> Task:
        task = project.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(project.slug, task_id)
        if expected is not None and task.source != expected:
            raise StaleMatchError(project.slug, task_id, "line changed since it was read")
        if not is_canonical(task):
            raise StaleMatchError(project.slug, task_id, "line is not in canonical form")
        return task

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> List[Project]:
        """Active projects first, then completed ones, each sorted by slug."""
        projects: List[Project] = []
        for directory in (self.config.active_dir, self.config.completed_dir):
            if not directory.is_dir():
                continue
            for path in sorted(directory.glob("*.md")):
                if not path.is_file() or not is_valid_slug(path.stem):
                    continue
                projects.append(parse_project(read_document(path), path.stem, path=path))
        return projects

    def get_project(self, slug: str) -> Project:
        path = self._find_document(slug)
        if path is None:
            raise ProjectNotFoundError(slug)
        return parse_project(read_document(path), slug, path=path)

    @log_performance("create_project")
    def create_project(
        self,
        name: str,
        description: str = "",
        template: Optional[ProjectTemplate] = None,
        today: Optional[date] = None,
    ) -> Project:
        """Write a new project document; an existing slug is never overwritten."""
        name = " ".join((name or "").split())
        slug = slugify(name)
        if not slug:
            raise TaskValidationError(["Project name must contain letters or digits"])
        description = " ".join((description or "").split())

        created = today or date.today()
        tasks = template.build_tasks(created) if template else []
        for task in tasks:
            issues = task.validate()
            if issues:
                raise TaskValidationError(issues)

        with self._lock(slug), log_operation("create_project", slug=slug, template=template.id if template else None):
            if self._find_document(slug) is not None:
                raise ProjectExistsError(slug)
            self.config.active_dir.mkdir(parents=True, exist_ok=True)
            path = self.config.active_dir / f"{slug}.md"
            text = render_project(name, description, created, tasks=tasks)
            write_document(path, text)

        logger.info(f"Created project '{slug}' with {len(tasks)} seeded tasks")
        self.hooks.log_store_event("project_created", slug, name=name, task_count=len(tasks))
        return parse_project(text, slug, path=path)

    @log_performance("set_project_status")
    def set_project_status(self, slug: str, status: str) -> Project:
        """Rewrite the status marker and move the document to the matching collection."""
        if status not in PROJECT_STATUSES:
            raise TaskValidationError([f"Invalid project status: {status}"])

        with self._lock(slug), log_operation("set_project_status", slug=slug, status=status):
            source = self._find_document(slug)
            if source is None:
                raise ProjectNotFoundError(slug)
            target_dir = self._collection_dir(status)
            target = target_dir / f"{slug}.md"
            if target != source and target.exists():
                raise ProjectExistsError(slug)

            text = replace_status(read_document(source), status)
            target_dir.mkdir(parents=True, exist_ok=True)
            write_document(target, text)
            if target != source:
                source.unlink()

        self.hooks.log_store_event("project_status_changed", slug, status=status)
        return parse_project(text, slug, path=target)

    @log_performance("delete_project")
    def delete_project(self, slug: str) -> None:
        with self._lock(slug), log_operation("delete_project", slug=slug):
            path = self._find_document(slug)
            if path is None:
                raise ProjectNotFoundError(slug)
            path.unlink()
        self.hooks.log_store_event("project_deleted", slug)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    @log_performance("add_task")
    def add_task(self, slug: str, fields: Dict[str, Any]) -> Task:
        """Insert a task directly under the ``## Tasks`` marker of an active project."""
        task = Task.from_fields(fields)
        issues = task.validate()
        if issues:
            raise TaskValidationError(issues)

        with self._lock(slug), log_operation("add_task", slug=slug):
            path, text, _ = self._load_active(slug)
            lines = text.splitlines(keepends=True)
            marker = find_marker(lines, TASKS_MARKER)
            if marker < 0:
                raise MalformedDocumentError(f"Project '{slug}' has no '{TASKS_MARKER}' section.")
            lines[marker + 1 : marker + 1] = encode_block(task)
            added = self._commit(path, slug, lines, text, line_no=marker + 1)

        self.hooks.log_store_event("task_added", slug, task_id=added.id, text=added.text)
        return added

    @log_performance("complete_task")
    def complete_task(self, slug: str, task_id: int, expected: Optional[str] = None) -> Task:
        """Flip the checkbox of a pending task; nothing else on the line changes."""
        with self._lock(slug), log_operation("complete_task", slug=slug, task_id=task_id):
            path, text, project = self._load_active(slug)
            task = self._locate(project, task_id, expected)
            if task.completed:
                raise TaskStateError(f"Task {task_id} in project '{slug}' is already completed.")

            lines = text.splitlines(keepends=True)
            _replace_line(lines, task.line_no, encode_task(replace(task, completed=True)))
            completed = self._commit(path, slug, lines, text, line_no=task.line_no)

        self.hooks.log_store_event("task_completed", slug, task_id=task_id, text=task.text)
        return completed

    @log_performance("update_task")
    def update_task(
        self,
        slug: str,
        task_id: int,
        fields: Dict[str, Any],
        expected: Optional[str] = None,
    ) -> Task:
        """Merge ``fields`` over the parsed task and rewrite its line.

        A ``subtasks`` entry replaces the whole subtask block.
        """
        changes = normalize_task_fields(fields)

        with self._lock(slug), log_operation("update_task", slug=slug, task_id=task_id, fields=sorted(changes)):
            path, text, project = self._load_active(slug)
            task = self._locate(project, task_id, expected)

            updated = replace(task, tags=list(task.tags), subtasks=list(task.subtasks))
            updated.apply(changes)
            issues = updated.validate()
            if issues:
                raise TaskValidationError(issues)

            lines = text.splitlines(keepends=True)
            if "subtasks" in changes:
                lines = self._splice(lines, task, encode_block(updated))
            else:
                _replace_line(lines, task.line_no, encode_task(updated))
            result = self._commit(path, slug, lines, text, line_no=task.line_no)

        self.hooks.log_store_event("task_updated", slug, task_id=task_id, fields=sorted(changes))
        return result

    @log_performance("delete_task")
    def delete_task(self, slug: str, task_id: int, expected: Optional[str] = None) -> Task:
        """Remove a task line together with its subtask lines."""
        with self._lock(slug), log_operation("delete_task", slug=slug, task_id=task_id):
            path, text, project = self._load_active(slug)
            task = self._locate(project, task_id, expected)
            self._commit(path, slug, self._splice(text.splitlines(keepends=True), task, None), text)

        self.hooks.log_store_event("task_deleted", slug, task_id=task_id, text=task.text)
        return task

    @log_performance("toggle_subtask")
    def toggle_subtask(self, slug: str, task_id: int, subtask_id: int) -> Task:
        with self._lock(slug), log_operation("toggle_subtask", slug=slug, task_id=task_id, subtask_id=subtask_id):
            path, text, project = self._load_active(slug)
            task = self._locate(project, task_id, None)
            if not 1 <= subtask_id <= len(task.subtasks):
                raise NotFoundError(f"Subtask {subtask_id} of task {task_id} not found in project '{slug}'.")

            subtask = task.subtasks[subtask_id - 1]
            lines = text.splitlines(keepends=True)
            if lines[subtask.line_no].splitlines()[0] != encode_subtask(subtask):
                raise StaleMatchError(slug, task_id, f"subtask {subtask_id} is not in canonical form")
            _replace_line(lines, subtask.line_no, encode_subtask(replace(subtask, completed=not subtask.completed)))
            result = self._commit(path, slug, lines, text, line_no=task.line_no)

        self.hooks.log_store_event("subtask_toggled", slug, task_id=task_id, subtask_id=subtask_id)
        return result

    @staticmethod
    def _splice(lines: List[str], task: Task, block: Optional[List[str]]) -> List[str]:
        """Drop the task's line and subtask lines, inserting ``block`` in their place."""
        dropped = {task.line_no, *(subtask.line_no for subtask in task.subtasks)}
        result: List[str] = []
        for index, line in enumerate(lines):
            if index == task.line_no and block is not None:
                result.extend(block)
            if index not in dropped:
                result.append(line)
        return result
