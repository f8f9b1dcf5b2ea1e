"""Built-in project templates."""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import ProjectTemplate, TaskBlueprint

BUILTIN_TEMPLATES: List[ProjectTemplate] = [
    ProjectTemplate(
        id="software-release",
        name="Software Release",
        description="Plan, build, verify and ship a release.",
        category="Development",
        tasks=[
            TaskBlueprint("Define release scope", "HIGH", due_offset_days=2, tags=["planning"]),
            TaskBlueprint("Freeze feature branch", "HIGH", due_offset_days=7, tags=["release"]),
            TaskBlueprint("Run regression suite", "HIGH", due_offset_days=9, tags=["qa"]),
            TaskBlueprint("Write release notes", "MEDIUM", due_offset_days=10, tags=["docs"]),
            TaskBlueprint("Publish release", "HIGH", due_offset_days=12, tags=["release", "ops"]),
            TaskBlueprint("Post-release retrospective", "LOW", due_offset_days=19),
        ],
    ),
    ProjectTemplate(
        id="bug-triage",
        name="Bug Triage",
        description="Work through an incoming bug backlog.",
        category="Development",
        tasks=[
            TaskBlueprint("Collect open reports", "HIGH", due_offset_days=1),
            TaskBlueprint("Reproduce and label", "MEDIUM", due_offset_days=3, tags=["triage"]),
            TaskBlueprint("Fix critical issues", "HIGH", due_offset_days=5, tags=["fix"]),
            TaskBlueprint("Schedule remaining fixes", "LOW", due_offset_days=7),
        ],
    ),
    ProjectTemplate(
        id="content-launch",
        name="Content Launch",
        description="Draft, review and publish a piece of content.",
        category="Marketing",
        tasks=[
            TaskBlueprint("Outline the piece", "MEDIUM", due_offset_days=1, tags=["writing"]),
            TaskBlueprint("Write first draft", "HIGH", due_offset_days=4, tags=["writing"]),
            TaskBlueprint("Peer review", "MEDIUM", due_offset_days=6, tags=["review"]),
            TaskBlueprint("Publish and announce", "HIGH", due_offset_days=8, tags=["launch"]),
        ],
    ),
]


def list_templates() -> List[ProjectTemplate]:
    return list(BUILTIN_TEMPLATES)


def get_template(template_id: str) -> Optional[ProjectTemplate]:
    for template in BUILTIN_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def templates_by_category() -> Dict[str, List[ProjectTemplate]]:
    grouped: Dict[str, List[ProjectTemplate]] = {}
    for template in BUILTIN_TEMPLATES:
        grouped.setdefault(template.category, []).append(template)
    return grouped
