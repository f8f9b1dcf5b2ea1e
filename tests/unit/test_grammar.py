"""Unit tests for the task line grammar.

This module tests encoding and decoding of task and subtask lines,
the escaping scheme, and how documents are split into tasks.
"""

import pytest

from taskboard.grammar import (
    decode_subtask_line,
    decode_task_line,
    decode_tasks,
    encode_block,
    encode_task,
    escape,
    is_canonical,
    split_unescaped,
    unescape,
)
from taskboard.models import SubTask, Task


class TestEscaping:
    """Test cases for the backslash escaping helpers."""

    def test_escape_pipe(self):
        assert escape("a|b") == r"a\|b"
        assert unescape(r"a\|b") == "a|b"

    def test_plain_backslash_is_left_alone(self):
        """A backslash that cannot start an escape is written as-is."""
        assert escape(r"C:\path") == r"C:\path"
        assert unescape(r"C:\path") == r"C:\path"

    def test_backslash_before_special_is_doubled(self):
        assert escape("dir\\") == "dir\\\\"
        assert unescape(escape("dir\\")) == "dir\\"
        assert unescape(escape(r"a\|b")) == r"a\|b"

    def test_split_unescaped_keeps_escaped_separators(self):
        assert split_unescaped(r"a\,b,c", ",") == [r"a\,b", "c"]
        assert split_unescaped("no separators", ",") == ["no separators"]


class TestEncodeTask:
    """Test cases for rendering tasks as lines."""

    def test_minimal_task(self):
        task = Task(id=1, text="Write spec", priority="HIGH", assigned="ALICE")
        assert encode_task(task) == "- [ ] HIGH: Write spec (assigned: ALICE)"

    def test_default_assignee(self):
        assert encode_task(Task(id=1, text="Tidy up")) == "- [ ] MEDIUM: Tidy up (assigned: UNASSIGNED)"

    def test_optional_fields_in_fixed_order(self):
        task = Task(
            id=1,
            text="Ship",
            priority="LOW",
            assigned="BOB",
            due_date="2025-03-01",
            tags=["release", "ops"],
            description="Final cut",
            completed=True,
            completed_date="2025-03-02",
        )
        assert encode_task(task) == (
            "- [x] LOW: Ship (assigned: BOB)| due: 2025-03-01| tags: release, ops"
            "| desc: Final cut| done: 2025-03-02"
        )

    def test_encode_block_includes_subtasks(self):
        task = Task(
            id=1,
            text="Parent",
            assigned="A",
            subtasks=[SubTask(id=1, text="first", completed=True), SubTask(id=2, text="second")],
        )
        assert encode_block(task) == [
            "- [ ] MEDIUM: Parent (assigned: A)",
            "  - [x] first",
            "  - [ ] second",
        ]


class TestDecodeTaskLine:
    """Test cases for parsing a single task line."""

    def test_decode_full_line(self):
        line = "- [x] LOW: Ship (assigned: BOB)| due: 2025-03-01| tags: release, ops| desc: Final cut| done: 2025-03-02"
        task = decode_task_line(line, task_id=3)

        assert task is not None
        assert task.id == 3
        assert task.text == "Ship"
        assert task.priority == "LOW"
        assert task.assigned == "BOB"
        assert task.due_date == "2025-03-01"
        assert task.tags == ["release", "ops"]
        assert task.description == "Final cut"
        assert task.completed is True
        assert task.completed_date == "2025-03-02"
        assert task.source == line

    def test_round_trip_with_special_characters(self):
        task = Task(
            id=1,
            text="a | b (assigned: x)",
            priority="HIGH",
            assigned="Team (A)",
            tags=["x,y", "z"],
            description="p|q",
        )
        decoded = decode_task_line(encode_task(task), task_id=1)

        assert decoded is not None
        assert decoded.text == "a | b (assigned: x)"
        assert decoded.assigned == "Team (A)"
        assert decoded.tags == ["x,y", "z"]
        assert decoded.description == "p|q"

    def test_uppercase_mark_is_completed_but_not_canonical(self):
        task = decode_task_line("- [X] HIGH: Done (assigned: A)", task_id=1)

        assert task is not None
        assert task.completed is True
        assert not is_canonical(task)

    def test_canonical_line(self):
        task = decode_task_line("- [ ] HIGH: Open (assigned: A)", task_id=1)
        assert is_canonical(task)

    @pytest.mark.parametrize(
        "line",
        [
            "- [ ] not a real task",
            "- [ ] URGENT: Bad priority (assigned: A)",
            "- [ ] HIGH: No assignee",
            "- [ ] HIGH: Trailing space (assigned: A) ",
            "- [ ] HIGH: Empty assignee (assigned: )",
            "- [ ] HIGH: Unknown field (assigned: A)| owner: B",
            "- [ ] HIGH: Duplicate (assigned: A)| due: 2025-01-01| due: 2025-01-02",
            "-  [ ] HIGH: Extra space (assigned: A)",
            "* [ ] HIGH: Wrong bullet (assigned: A)",
        ],
    )
    def test_malformed_lines_are_rejected(self, line):
        assert decode_task_line(line) is None


class TestDecodeTasks:
    """Test cases for extracting tasks from a whole document."""

    def test_ids_subtasks_and_line_numbers(self):
        text = "\n".join([
            "## Tasks",
            "- [ ] HIGH: Parent (assigned: A)",
            "  - [x] Child one",
            "  - [ ] Child two",
            "- [ ] LOW: Other (assigned: B)",
        ])
        tasks = decode_tasks(text)

        assert [task.id for task in tasks] == [1, 2]
        assert [task.line_no for task in tasks] == [1, 4]
        parent = tasks[0]
        assert [subtask.id for subtask in parent.subtasks] == [1, 2]
        assert [subtask.completed for subtask in parent.subtasks] == [True, False]
        assert [subtask.line_no for subtask in parent.subtasks] == [2, 3]
        assert tasks[1].subtasks == []

    def test_malformed_line_is_dropped(self):
        text = "- [ ] HIGH: Real (assigned: A)\n- [ ] not a real task\n"
        tasks = decode_tasks(text)

        assert len(tasks) == 1
        assert tasks[0].text == "Real"

    def test_non_indented_line_ends_subtask_block(self):
        text = "- [ ] HIGH: Parent (assigned: A)\nA note\n  - [ ] orphan\n"
        tasks = decode_tasks(text)

        assert tasks[0].subtasks == []

    def test_blank_line_does_not_end_subtask_block(self):
        text = "- [ ] HIGH: Parent (assigned: A)\n\n  - [ ] child\n"
        tasks = decode_tasks(text)

        assert [subtask.text for subtask in tasks[0].subtasks] == ["child"]

    def test_decode_subtask_line(self):
        subtask = decode_subtask_line("  - [x] Review", subtask_id=2)

        assert subtask.id == 2
        assert subtask.text == "Review"
        assert subtask.completed is True
        assert decode_subtask_line("    - [ ] too deep") is None
        assert decode_subtask_line("  - [ ] ") is None

    def test_reparse_after_reencode_is_identical(self):
        text = "\n".join([
            "- [ ] HIGH: One (assigned: A)| due: 2025-01-02| tags: a, b",
            "  - [ ] sub",
            "- [x] LOW: Two \\| pipes (assigned: B)| desc: notes",
        ])
        first = decode_tasks(text)
        lines = []
        for task in first:
            lines.extend(encode_block(task))
        second = decode_tasks("\n".join(lines))

        assert [task.to_dict() for task in second] == [task.to_dict() for task in first]
