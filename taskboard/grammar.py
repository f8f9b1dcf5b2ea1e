"""Line grammar for task checklist entries.

One task is stored as one markdown line::

    - [x] HIGH: <text> (assigned: <assignee>)| due: <date>| tags: <a, b>| desc: <text>| done: <date>

Everything after ``(assigned: ...)`` is optional and pipe-delimited. The
encoder emits the optional fields in the fixed order due, tags, desc, done
and only when they hold a value.

A backslash escapes ``\\``, ``|``, ``,``, ``(`` and ``)``. The encoder
escapes ``|`` in every field, ``,`` inside tags and parentheses inside the
assignee. A backslash is doubled only where it would otherwise read as an
escape, so lines without special characters match the legacy unescaped
format byte for byte. Field keys are only recognised at the start of a
segment, so ``:`` never needs escaping.

Subtasks follow their task as lines indented by exactly two spaces::

      - [ ] <subtask text>

Decoding never raises: a line that does not fit the grammar is skipped.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from .models import PRIORITIES, UNASSIGNED, SubTask, Task

ESCAPABLE = frozenset("\\|,()")

_TEXT_SPECIALS = "|"
_TAG_SPECIALS = "|,"
_ASSIGNEE_SPECIALS = "|()"

ASSIGNED_MARKER = " (assigned: "
FIELD_ORDER = ("due", "tags", "desc", "done")

_TASK_LINE_PATTERN = re.compile(
    r"^- \[(?P<mark>[ xX])\] (?P<priority>" + "|".join(PRIORITIES) + r"): (?P<rest>.*)$"
)
_SUBTASK_LINE_PATTERN = re.compile(r"^  - \[(?P<mark>[ xX])\] (?P<text>.*\S.*)$")
_FIELD_PATTERN = re.compile(r"^ (?P<key>[a-z]+):(?: (?P<value>.*))?$")


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------


def escape(value: str, specials: str = _TEXT_SPECIALS) -> str:
    """Escape ``value`` so it survives a decode unchanged."""
    out: List[str] = []
    for index, char in enumerate(value):
        if char in specials:
            out.append("\\" + char)
        elif char == "\\":
            following = value[index + 1] if index + 1 < len(value) else None
            out.append("\\\\" if following is None or following in ESCAPABLE else char)
        else:
            out.append(char)
    return "".join(out)


def unescape(value: str) -> str:
    out: List[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char == "\\" and index + 1 < len(value) and value[index + 1] in ESCAPABLE:
            out.append(value[index + 1])
            index += 2
            continue
        out.append(char)
        index += 1
    return "".join(out)


def _tokens(value: str) -> List[Tuple[str, bool]]:
    """Split into (token, escaped) pairs, one character per unescaped token."""
    tokens: List[Tuple[str, bool]] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char == "\\" and index + 1 < len(value) and value[index + 1] in ESCAPABLE:
            tokens.append((value[index : index + 2], True))
            index += 2
            continue
        tokens.append((char, False))
        index += 1
    return tokens


def split_unescaped(value: str, separator: str) -> List[str]:
    """Split on ``separator`` where it is not escaped. Parts stay escaped."""
    parts: List[str] = []
    current: List[str] = []
    for token, escaped in _tokens(value):
        if not escaped and token == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(token)
    parts.append("".join(current))
    return parts


def _has_unescaped(value: str, chars: str) -> bool:
    return any(not escaped and token in chars for token, escaped in _tokens(value))


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_task(task: Task) -> str:
    """Render ``task`` as a single checklist line (subtasks excluded)."""
    mark = "x" if task.completed else " "
    assigned = task.assigned or UNASSIGNED
    line = (
        f"- [{mark}] {task.priority}: {escape(task.text)}"
        f"{ASSIGNED_MARKER}{escape(assigned, _ASSIGNEE_SPECIALS)})"
    )
    if task.due_date:
        line += f"| due: {escape(task.due_date)}"
    if task.tags:
        line += "| tags: " + ", ".join(escape(tag, _TAG_SPECIALS) for tag in task.tags)
    if task.description:
        line += f"| desc: {escape(task.description)}"
    if task.completed_date:
        line += f"| done: {escape(task.completed_date)}"
    return line


def encode_subtask(subtask: SubTask) -> str:
    mark = "x" if subtask.completed else " "
    return f"  - [{mark}] {subtask.text}"


def encode_block(task: Task) -> List[str]:
    """Task line followed by its subtask lines."""
    return [encode_task(task)] + [encode_subtask(subtask) for subtask in task.subtasks]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _parse_fields(segments: List[str]) -> Optional[Dict[str, str]]:
    fields: Dict[str, str] = {}
    for segment in segments:
        match = _FIELD_PATTERN.match(segment)
        if not match:
            return None
        key = match.group("key")
        if key not in FIELD_ORDER or key in fields:
            return None
        fields[key] = match.group("value") or ""
    return fields


def decode_task_line(line: str, task_id: int = 0) -> Optional[Task]:
    """Decode one line, or return ``None`` when it does not fit the grammar."""
    match = _TASK_LINE_PATTERN.match(line)
    if not match:
        return None

    segments = split_unescaped(match.group("rest"), "|")
    head = segments[0]

    marker_at = head.rfind(ASSIGNED_MARKER)
    if marker_at <= 0:
        return None
    text_raw = head[:marker_at]
    tail = head[marker_at + len(ASSIGNED_MARKER) :]

    tail_tokens = _tokens(tail)
    if not tail_tokens or tail_tokens[-1] != (")", False):
        return None
    assigned_raw = tail[:-1]
    if not assigned_raw.strip() or _has_unescaped(assigned_raw, "()"):
        return None

    fields = _parse_fields(segments[1:])
    if fields is None:
        return None

    text = unescape(text_raw)
    if not text.strip():
        return None

    tags: List[str] = []
    if fields.get("tags"):
        tags = [unescape(part).strip() for part in split_unescaped(fields["tags"], ",")]
        tags = [tag for tag in tags if tag]

    return Task(
        id=task_id,
        text=text,
        priority=match.group("priority"),
        assigned=unescape(assigned_raw),
        due_date=unescape(fields["due"]) if fields.get("due") else None,
        tags=tags,
        description=unescape(fields["desc"]) if fields.get("desc") else None,
        completed=match.group("mark") in ("x", "X"),
        completed_date=unescape(fields["done"]) if fields.get("done") else None,
        source=line,
    )


def decode_subtask_line(line: str, subtask_id: int = 0) -> Optional[SubTask]:
    match = _SUBTASK_LINE_PATTERN.match(line)
    if not match:
        return None
    return SubTask(
        id=subtask_id,
        text=match.group("text"),
        completed=match.group("mark") in ("x", "X"),
    )


def decode_tasks(text: str) -> List[Task]:
    """Extract every task (with subtasks) from a document, in order.

    Task ids run 1..N in the order encountered. A subtask block ends at the
    first non-blank line that is not indented by exactly two spaces.
    """
    tasks: List[Task] = []
    current: Optional[Task] = None

    for line_no, line in enumerate(text.splitlines()):
        task = decode_task_line(line, task_id=len(tasks) + 1)
        if task is not None:
            task.line_no = line_no
            tasks.append(task)
            current = task
            continue

        if current is None or not line.strip():
            continue

        if line.startswith("  ") and not line.startswith("   "):
            subtask = decode_subtask_line(line, subtask_id=len(current.subtasks) + 1)
            if subtask is not None:
                subtask.line_no = line_no
                current.subtasks.append(subtask)
            continue

        current = None

    return tasks


def is_canonical(task: Task) -> bool:
    """True when the task's source line is exactly what the encoder produces."""
    return task.source is not None and encode_task(task) == task.source
