"""
Line-addressed adapter over the tree mutator.

File-mode callers address tasks by their 1-indexed line in the document.
Each function here parses the text (task ids become ``{project_id}-{line}``),
turns line numbers into ids, runs the same id-addressed mutator as the
structured path, and serializes the result back to text.

Line numbers are only valid against the text they were read from: the output
is re-rendered, so any line may move.
"""

from typing import Any, Optional, Sequence, Tuple

from mdtasks.engine import mutations
from mdtasks.engine.errors import NotFoundError
from mdtasks.engine.recurrence import handle_recurring, update_with_rollover
from mdtasks.models.task import Project, TaskLocation
from mdtasks.parsers.document import parse_document
from mdtasks.parsers.serializer import render_lines


def _load(text: str, project_id: str) -> Project:
    return parse_document(text, project_id)


def _dump(project: Project) -> str:
    lines, _ = render_lines(project)
    return "\n".join(lines) + "\n"


def _dump_with_line(project: Project, task_id: str) -> Tuple[str, int]:
    lines, line_numbers = render_lines(project)
    return "\n".join(lines) + "\n", line_numbers[task_id]


def locate_line(project: Project, line_number: int) -> TaskLocation:
    """Find the task written on ``line_number``."""
    task = project.find_by_line(line_number)
    if task is None:
        raise NotFoundError(f"No task found at line {line_number}")
    return project.locate(task.id)


def add_task_at(
    text: str,
    project_id: str,
    content: str,
    status: str = "todo",
    due_date: Optional[str] = None,
    scheduled_date: Optional[str] = None,
    repeat_frequency: Optional[str] = None,
    repeat_interval_days: Optional[int] = None,
    group_id: Optional[str] = None,
    parent_line_number: Optional[int] = None,
) -> Tuple[str, int]:
    """Add a task; returns (new text, line number of the new task)."""
    project = _load(text, project_id)
    parent_id = None
    if parent_line_number is not None:
        parent_id = locate_line(project, parent_line_number).task.id

    project, task = mutations.add_task(
        project,
        group_id,
        content,
        status=status,
        due_date=due_date,
        parent_id=parent_id,
        repeat_frequency=repeat_frequency,
        scheduled_date=scheduled_date,
        repeat_interval_days=repeat_interval_days,
    )
    return _dump_with_line(project, task.id)


def update_task_at(
    text: str,
    project_id: str,
    line_number: int,
    roll_recurring: bool = False,
    **changes: Any,
) -> str:
    """
    Merge ``changes`` into the task on ``line_number``. With ``roll_recurring``,
    marking a recurring task done creates its next occurrence.
    """
    project = _load(text, project_id)
    task_id = locate_line(project, line_number).task.id
    if roll_recurring:
        return _dump(update_with_rollover(project, task_id, **changes))
    return _dump(mutations.update_task(project, task_id, **changes))


def delete_task_at(text: str, project_id: str, line_number: int) -> str:
    project = _load(text, project_id)
    task_id = locate_line(project, line_number).task.id
    return _dump(mutations.delete_task(project, task_id))


def move_to_parent_at(
    text: str,
    project_id: str,
    line_number: int,
    new_parent_line_number: Optional[int],
) -> str:
    """Reparent within the task's own group; None makes it a root task."""
    project = _load(text, project_id)
    location = locate_line(project, line_number)
    new_parent_id = None
    if new_parent_line_number is not None:
        new_parent_id = locate_line(project, new_parent_line_number).task.id

    return _dump(mutations.move_to_parent(
        project, location.group.id, location.task.id, new_parent_id
    ))


def move_to_group_at(text: str, project_id: str, line_number: int, to_group_id: str) -> str:
    project = _load(text, project_id)
    location = locate_line(project, line_number)
    return _dump(mutations.move_to_group(
        project, location.group.id, to_group_id, location.task.id
    ))


def reorder_at(
    text: str,
    project_id: str,
    group_id: str,
    line_numbers: Sequence[int],
) -> str:
    """Reorder a group's root tasks, given as their current line numbers."""
    project = _load(text, project_id)
    task_ids = [locate_line(project, line).task.id for line in line_numbers]
    return _dump(mutations.reorder(project, group_id, task_ids))


def handle_recurring_at(text: str, project_id: str, line_number: int) -> Tuple[str, int]:
    """Complete a recurring task; returns (new text, line of the next occurrence)."""
    project = _load(text, project_id)
    task_id = locate_line(project, line_number).task.id
    project, next_task = handle_recurring(project, task_id)
    return _dump_with_line(project, next_task.id)


def add_group_at(text: str, project_id: str, name: str) -> Tuple[str, str]:
    """
    Append an empty group; returns (new text, group id in the new text).

    Group ids are positional in file mode, so the id is read back from the
    re-parsed output.
    """
    project, _ = mutations.add_group(_load(text, project_id), name)
    new_text = _dump(project)
    return new_text, _load(new_text, project_id).groups[-1].id
