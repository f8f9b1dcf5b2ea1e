"""Project document parsing and rendering."""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional

from .grammar import decode_tasks, encode_block
from .models import Project, Task

TASKS_MARKER = "## Tasks"
COMPLETED_MARKER = "## Completed"

_DESCRIPTION_PATTERN = re.compile(r"\*\*Description:\*\*[ \t]*(?P<value>[^\r\n]*)")
_STATUS_PATTERN = re.compile(r"\*\*Status:\*\*[ \t]*(?P<value>[^\r\n]*)")
_CREATED_PATTERN = re.compile(r"\*\*Created:\*\*[ \t]*(?P<value>[^\r\n]*)")


def slugify(value: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to ``-`` and trim."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def title_from_slug(slug: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), re.sub(r"[-_]+", " ", slug))


def line_ending(line: str) -> str:
    """The line break ``line`` ends with, or ``""`` for a final unterminated line."""
    content = line.splitlines()[0] if line else ""
    return line[len(content):]


def document_newline(text: str) -> str:
    """The first ``\\r\\n``, ``\\n`` or ``\\r`` break used in ``text``, defaulting to ``\\n``."""
    for line in text.splitlines(keepends=True):
        ending = line_ending(line)
        if ending in ("\r\n", "\n", "\r"):
            return ending
    return "\n"


def _marker_value(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    return match.group("value").strip() if match else ""


def parse_project(
    text: str,
    slug: str,
    name: Optional[str] = None,
    path: Optional[Path] = None,
) -> Project:
    """Build a :class:`Project` from a document's full text.

    A pure function of ``text``: parsing unchanged text twice yields the
    same tasks, ids and field values.
    """
    status = "completed" if _marker_value(_STATUS_PATTERN, text).lower() == "completed" else "active"
    return Project(
        name=name or title_from_slug(slug),
        slug=slug,
        description=_marker_value(_DESCRIPTION_PATTERN, text),
        status=status,
        created=_marker_value(_CREATED_PATTERN, text),
        tasks=decode_tasks(text),
        path=path,
    )


def render_project(
    name: str,
    description: str = "",
    created: Optional[date] = None,
    status: str = "active",
    tasks: Iterable[Task] = (),
) -> str:
    """Render a new project document with header markers and task sections."""
    created_on = (created or date.today()).isoformat()
    lines: List[str] = [
        f"# Project: {name}",
        "",
        f"**Description:** {description}",
        f"**Created:** {created_on}",
        f"**Status:** {status}",
        "",
        TASKS_MARKER,
    ]
    for task in tasks:
        lines.extend(encode_block(task))
    lines.extend(["", COMPLETED_MARKER])
    return "\n".join(lines) + "\n"


def find_marker(lines: List[str], marker: str) -> int:
    """Index of the first line equal to ``marker`` (ignoring trailing space), or -1."""
    for index, line in enumerate(lines):
        if line.rstrip() == marker:
            return index
    return -1


def replace_status(text: str, status: str) -> str:
    """Rewrite the ``**Status:**`` marker, adding one under the header if absent."""
    if _STATUS_PATTERN.search(text):
        return _STATUS_PATTERN.sub(f"**Status:** {status}", text, count=1)
    newline = document_newline(text)
    lines = text.splitlines(keepends=True)
    if lines and not line_ending(lines[-1]):
        lines[-1] += newline
    insert_at = 1 if lines and lines[0].startswith("# ") else 0
    lines.insert(insert_at, f"**Status:** {status}{newline}")
    return "".join(lines)
