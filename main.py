"""MCP server exposing the taskboard project and task tools."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.resources import TextResource

from taskboard import StoreConfig, TaskBoard
from taskboard.board_logging import setup_logging

mcp = FastMCP("taskboard")


# Boards are shared per configuration so per-project locks outlive a single call.
_BOARDS: Dict[Tuple[str, str, int, str], TaskBoard] = {}

PROJECTS_URI = "taskboard://projects"
STALE_SUGGESTION = "Re-fetch the project with get_project and retry with the current task ids."


def _board() -> TaskBoard:
    config = StoreConfig.from_env()
    key = (
        str(config.base_directory),
        str(config.activity_log_path),
        config.retention_cap,
        config.default_user,
    )
    board = _BOARDS.get(key)
    if board is None:
        board = _BOARDS[key] = TaskBoard(config)
    return board


def _text_resource(text: str) -> TextResource:
    return TextResource(uri=PROJECTS_URI, name="projects", mime_type="text/plain", text=text)


def _provided(**fields: Any) -> Dict[str, Any]:
    """Drop arguments left at ``None``; an empty string still clears a field."""
    return {key: value for key, value in fields.items() if value is not None}


@mcp.tool()
def list_projects() -> Dict[str, Any]:
    """List active and completed projects with task counts."""

    projects = _board().list_projects()
    return {"projects": [project.to_dict(include_tasks=False) for project in projects]}


@mcp.resource(PROJECTS_URI)
def resource_projects():
    """Plain-text overview of every project and its pending work."""

    projects = _board().list_projects()
    if not projects:
        return _text_resource("No projects found.")

    lines = ["Taskboard Projects"]
    for project in projects:
        summary = project.summary()
        lines.append("")
        lines.append(f"- {project.slug}: {project.name} [{project.status}]")
        if project.description:
            lines.append(f"  {project.description}")
        lines.append(f"  Tasks: {summary['pending']} pending, {summary['completed']} completed")

    return _text_resource("\n".join(lines))


@mcp.tool()
def get_project(slug: str) -> Dict[str, Any]:
    """Retrieve one project with all of its tasks and subtasks.

    Task ids are positions in the document; fetch again after any change."""

    project = _board().get_project(slug)
    if project is None:
        return {"error": f"Project '{slug}' not found", "suggestion": "Call list_projects to see available slugs"}
    return {"project": project.to_dict()}


@mcp.tool()
def create_project(
    name: str,
    description: str = "",
    template_id: Optional[str] = None,
    user: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a new project document, optionally seeded from a template.
    Fails if a project with the same slug already exists."""

    board = _board()
    project = board.create_project(name, description, template_id=template_id, user=user)
    if project is None:
        return {
            "error": f"Could not create project '{name}'",
            "suggestion": "Pick a different name, or call list_templates to check the template id",
        }
    return {"project": project.to_dict(), "message": f"Project '{project.slug}' created."}


@mcp.tool()
def list_templates() -> Dict[str, Any]:
    """List the built-in project templates, with their ids grouped by category."""

    board = _board()
    categories = {
        category: [template.id for template in templates]
        for category, templates in board.templates_by_category().items()
    }
    return {
        "templates": [template.to_dict() for template in board.list_templates()],
        "categories": categories,
    }


@mcp.tool()
def set_project_status(slug: str, status: str) -> Dict[str, Any]:
    """Mark a project 'active' or 'completed', moving its document between collections."""

    project = _board().set_project_status(slug, status)
    if project is None:
        return {"error": f"Could not set status of '{slug}' to '{status}'"}
    return {"project": project.to_dict(include_tasks=False)}


@mcp.tool()
def delete_project(slug: str) -> Dict[str, Any]:
    """Delete a project document permanently, from either collection."""

    if not _board().delete_project(slug):
        return {"success": False, "error": f"Project '{slug}' could not be deleted"}
    return {"success": True, "slug": slug}


@mcp.tool()
def add_task(
    slug: str,
    text: str,
    priority: str = "MEDIUM",
    assigned: Optional[str] = None,
    due_date: Optional[str] = None,
    tags: Optional[List[str]] = None,
    description: Optional[str] = None,
    subtasks: Optional[List[str]] = None,
    user: Optional[str] = None,
) -> Dict[str, Any]:
    """Add a task to the top of an active project's task list."""

    fields = _provided(
        text=text,
        priority=priority,
        assigned=assigned,
        due_date=due_date,
        tags=tags,
        description=description,
        subtasks=subtasks,
    )
    task = _board().add_task(slug, fields, user=user)
    if task is None:
        return {
            "error": f"Could not add task to '{slug}'",
            "suggestion": "Check that the project is active and the fields are valid",
        }
    return {"slug": slug, "task": task.to_dict(), "expected": task.source}


@mcp.tool()
def update_task(
    slug: str,
    task_id: int,
    text: Optional[str] = None,
    priority: Optional[str] = None,
    assigned: Optional[str] = None,
    due_date: Optional[str] = None,
    tags: Optional[List[str]] = None,
    description: Optional[str] = None,
    completed: Optional[bool] = None,
    completed_date: Optional[str] = None,
    subtasks: Optional[List[str]] = None,
    expected: Optional[str] = None,
    user: Optional[str] = None,
) -> Dict[str, Any]:
    """Update selected task fields. Omitted fields are kept; pass an empty string to clear one.
    Pass `expected` (the task line returned earlier) to refuse the update if the line changed since."""

    fields = _provided(
        text=text,
        priority=priority,
        assigned=assigned,
        due_date=due_date,
        tags=tags,
        description=description,
        completed=completed,
        completed_date=completed_date,
        subtasks=subtasks,
    )
    if not fields:
        return {"error": "No fields to update"}

    task = _board().update_task(slug, task_id, fields, expected=expected, user=user)
    if task is None:
        return {"error": f"Task {task_id} in '{slug}' could not be updated", "suggestion": STALE_SUGGESTION}
    return {"slug": slug, "task": task.to_dict(), "expected": task.source}


@mcp.tool()
def complete_task(
    slug: str,
    task_id: int,
    expected: Optional[str] = None,
    user: Optional[str] = None,
) -> Dict[str, Any]:
    """Mark a pending task completed."""

    board = _board()
    if not board.complete_task(slug, task_id, expected=expected, user=user):
        return {
            "success": False,
            "error": f"Task {task_id} in '{slug}' could not be completed",
            "suggestion": STALE_SUGGESTION,
        }
    project = board.get_project(slug)
    remaining = len(project.pending_tasks) if project else None
    return {"success": True, "slug": slug, "task_id": task_id, "remaining": remaining}


@mcp.tool()
def delete_task(
    slug: str,
    task_id: int,
    expected: Optional[str] = None,
    user: Optional[str] = None,
) -> Dict[str, Any]:
    """Delete a task and its subtasks. Ids of later tasks shift down by one."""

    if not _board().delete_task(slug, task_id, expected=expected, user=user):
        return {"success": False, "error": f"Task {task_id} in '{slug}' could not be deleted", "suggestion": STALE_SUGGESTION}
    return {"success": True, "slug": slug, "task_id": task_id}


@mcp.tool()
def toggle_subtask(slug: str, task_id: int, subtask_id: int, user: Optional[str] = None) -> Dict[str, Any]:
    """Flip one subtask between done and not done."""

    task = _board().toggle_subtask(slug, task_id, subtask_id, user=user)
    if task is None:
        return {"error": f"Subtask {subtask_id} of task {task_id} in '{slug}' could not be toggled"}
    return {"slug": slug, "task": task.to_dict()}


@mcp.tool()
def add_comment(
    slug: str,
    comment: str,
    task_id: Optional[int] = None,
    user: Optional[str] = None,
) -> Dict[str, Any]:
    """Record a comment on a project or task in the activity feed."""

    activity = _board().add_comment(slug, comment, task_id=task_id, user=user)
    if activity is None:
        return {"error": "Comment could not be recorded", "suggestion": "Check the project slug and task id"}
    return {"activity": activity.to_dict()}


@mcp.tool()
def get_activity(limit: int = 50) -> Dict[str, Any]:
    """Most recent activity, newest first."""

    activities = _board().get_activity(limit)
    return {"count": len(activities), "activities": [activity.to_dict() for activity in activities]}


@mcp.tool()
def search_tasks(
    query: str = "",
    priority: Optional[str] = None,
    assigned: Optional[str] = None,
    status: Optional[str] = None,
    project: Optional[str] = None,
) -> Dict[str, Any]:
    """Search tasks across projects by text, tags and description, with optional filters.
    `status` is 'pending' or 'completed'."""

    try:
        results = _board().search_tasks(
            query, priority=priority, assigned=assigned, status=status, project=project
        )
    except ValueError as e:
        return {"error": str(e)}
    return {"count": len(results), "tasks": results}


@mcp.tool()
def get_notifications(include_upcoming: bool = False) -> Dict[str, Any]:
    """Overdue tasks, tasks due within a week (when requested) and assigned tasks."""

    return _board().get_notifications(include_upcoming=include_upcoming)


if __name__ == "__main__":
    setup_logging()
    mcp.run(transport="stdio")
