"""Read-only queries across projects: search and notifications."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from .models import PRIORITIES, UNASSIGNED, Project, Task, is_iso_date

TASK_STATUSES = ("pending", "completed")
DUE_SOON_WINDOW_DAYS = 7


def _task_row(project: Project, task: Task) -> Dict[str, Any]:
    row = task.to_dict()
    row["project_slug"] = project.slug
    row["project_name"] = project.name
    return row


def _matches_query(project: Project, task: Task, needle: str) -> bool:
    haystacks = [task.text, project.name, task.description or ""] + list(task.tags)
    return any(needle in value.lower() for value in haystacks)


def search_tasks(
    projects: Iterable[Project],
    query: str = "",
    priority: Optional[str] = None,
    assigned: Optional[str] = None,
    status: Optional[str] = None,
    project: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Filter tasks across projects.

    ``query`` is matched case-insensitively against task text, project
    name, task description and tags. The other filters are exact matches;
    ``status`` is ``pending`` or ``completed``.
    """
    if status is not None and status not in TASK_STATUSES:
        raise ValueError(f"status must be one of {TASK_STATUSES}, got: {status}")
    if priority is not None and priority.upper() not in PRIORITIES:
        raise ValueError(f"priority must be one of {PRIORITIES}, got: {priority}")

    needle = query.strip().lower()
    results: List[Dict[str, Any]] = []
    for item in projects:
        if project and item.slug != project:
            continue
        for task in item.tasks:
            if needle and not _matches_query(item, task, needle):
                continue
            if priority and task.priority != priority.upper():
                continue
            if assigned and task.assigned != assigned:
                continue
            if status == "pending" and task.completed:
                continue
            if status == "completed" and not task.completed:
                continue
            results.append(_task_row(item, task))
    return results


def collect_notifications(
    projects: Iterable[Project],
    today: Optional[date] = None,
    include_upcoming: bool = False,
    window_days: int = DUE_SOON_WINDOW_DAYS,
) -> Dict[str, Any]:
    """Overdue, due-soon and assignment notices for pending tasks.

    A task due today counts as overdue. Notices are ordered by priority,
    keeping document order within a priority.
    """
    today = today or date.today()
    horizon = today + timedelta(days=window_days)
    notifications: List[Dict[str, Any]] = []

    for project in projects:
        for task in project.pending_tasks:
            base = {
                "project": project.name,
                "project_slug": project.slug,
                "task_id": task.id,
                "task": task.text,
                "assignee": task.assigned,
            }

            if task.due_date and is_iso_date(task.due_date):
                due = date.fromisoformat(task.due_date)
                if due <= today:
                    days = (today - due).days
                    notifications.append({
                        **base,
                        "id": f"overdue-{project.slug}-{task.id}",
                        "type": "overdue",
                        "priority": "HIGH",
                        "due_date": task.due_date,
                        "days_overdue": days,
                        "message": f'Task "{task.text}" is overdue',
                    })
                elif include_upcoming and due <= horizon:
                    days = (due - today).days
                    notifications.append({
                        **base,
                        "id": f"due-soon-{project.slug}-{task.id}",
                        "type": "due_soon",
                        "priority": "HIGH" if task.priority == "HIGH" else "MEDIUM",
                        "due_date": task.due_date,
                        "days_until_due": days,
                        "message": f'Task "{task.text}" due in {days} days',
                    })

            if task.assigned and task.assigned != UNASSIGNED:
                notifications.append({
                    **base,
                    "id": f"assigned-{project.slug}-{task.id}",
                    "type": "assigned",
                    "priority": task.priority,
                    "message": f'You were assigned to "{task.text}"',
                })

    notifications.sort(key=lambda notice: PRIORITIES.index(notice["priority"]))
    return {
        "count": len(notifications),
        "notifications": notifications,
        "summary": {
            "overdue": sum(1 for n in notifications if n["type"] == "overdue"),
            "due_soon": sum(1 for n in notifications if n["type"] == "due_soon"),
            "assigned": sum(1 for n in notifications if n["type"] == "assigned"),
        },
    }
