"""
Serializer for task documents (the inverse of parsers.document).

Output layout:

    # {title}
    <blank>
    ### {group name}          (omitted for a lone "Default" group)
    - [ ] task #do:… #due:… #repeat:…
        - [x] subtask
    <blank>                   (between groups)

The output is not byte-identical to arbitrary input, but it re-parses to the
same tree and serializing that tree again reproduces it exactly.
"""

from typing import Dict, List, Tuple

from mdtasks.models.task import DEFAULT_GROUP_NAME, INDENT, Project, Task
from mdtasks.parsers.tags import compose_tags

_CHECKBOX = {
    "done": "[x]",
    "doing": "[/]",
}


def format_checkbox(status: str) -> str:
    return _CHECKBOX.get(status, "[ ]")


def format_task_line(task: Task, depth: int = 0) -> str:
    """Render a single task line (no subtasks)."""
    text = compose_tags(
        task.content,
        due_date=task.due_date,
        scheduled_date=task.scheduled_date,
        repeat_frequency=task.repeat_frequency,
        repeat_interval_days=task.repeat_interval_days,
    )
    return f"{INDENT * depth}- {format_checkbox(task.status)} {text}"


def _show_group_header(project: Project) -> bool:
    return len(project.groups) > 1 or project.groups[0].name != DEFAULT_GROUP_NAME


def render_lines(project: Project) -> Tuple[List[str], Dict[str, int]]:
    """
    Render a Project to lines.

    Returns:
        (lines, line_numbers) where line_numbers maps each task id to the
        1-indexed line it was written on.
    """
    lines: List[str] = [f"# {project.title}", ""]
    line_numbers: Dict[str, int] = {}
    show_headers = bool(project.groups) and _show_group_header(project)

    for index, group in enumerate(project.groups):
        if show_headers:
            lines.append(f"### {group.name}")

        stack = [(task, 0) for task in reversed(group.tasks)]
        while stack:
            task, depth = stack.pop()
            lines.append(format_task_line(task, depth))
            line_numbers[task.id] = len(lines)
            stack.extend((child, depth + 1) for child in reversed(task.subtasks))

        if index < len(project.groups) - 1:
            lines.append("")

    return lines, line_numbers


def serialize_project(project: Project) -> str:
    """Serialize a Project to document text (newline-terminated)."""
    lines, _ = render_lines(project)
    return "\n".join(lines) + "\n"
