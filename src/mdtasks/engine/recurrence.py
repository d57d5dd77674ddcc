"""
Recurring-task rollover.

Completing a recurring task keeps it as a done record and appends a fresh
todo occurrence next to it, with every date it carries advanced by one period:

    daily    +1 day
    weekly   +7 days
    monthly  same day next month, clamped to the month's last day
    custom   +repeat_interval_days days
"""

import copy
from datetime import timedelta
from typing import Optional, Tuple

from mdtasks.engine.errors import InvalidFieldError, MalformedDateError, NotFoundError, NotRecurringError
from mdtasks.engine.mutations import update_task
from mdtasks.engine.validation import validate_recurrence
from mdtasks.models.task import Project, Task
from mdtasks.utils.dates import add_months, to_date
from mdtasks.utils.ids import generate_task_id


def next_occurrence(
    current: str,
    repeat_frequency: str,
    repeat_interval_days: Optional[int] = None,
) -> str:
    """
    Advance an ISO date by one recurrence period.

    Raises:
        MalformedDateError: ``current`` is not a valid ISO date
        InvalidFieldError: unknown frequency, or custom without an interval
    """
    start = to_date(current)
    if start is None:
        raise MalformedDateError(f"Cannot advance invalid date: {current!r}")
    validate_recurrence(repeat_frequency, repeat_interval_days)

    if repeat_frequency == "daily":
        nxt = start + timedelta(days=1)
    elif repeat_frequency == "weekly":
        nxt = start + timedelta(days=7)
    elif repeat_frequency == "monthly":
        nxt = add_months(start, 1)
    elif repeat_frequency == "custom":
        nxt = start + timedelta(days=repeat_interval_days)
    else:
        raise InvalidFieldError(f"Unknown repeat frequency '{repeat_frequency}'")
    return nxt.isoformat()


def handle_recurring(project: Project, task_id: str) -> Tuple[Project, Task]:
    """
    Complete a recurring task and create its next occurrence.

    The original task is marked done and kept. The new task copies content and
    recurrence settings, starts as todo, and is appended as the last sibling:
    under the same parent for a subtask, at the end of the group otherwise.
    Tasks with no dates still roll over; the new occurrence simply has none.

    Returns:
        (new project, the new occurrence)

    Raises:
        NotFoundError: no task with ``task_id``
        NotRecurringError: the task has no repeat frequency
    """
    project = copy.deepcopy(project)
    location = project.locate(task_id)
    if location is None:
        raise NotFoundError(f"Task '{task_id}' not found")

    task = location.task
    if not task.is_recurring:
        raise NotRecurringError(f"Task '{task_id}' is not recurring")

    def advance(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return next_occurrence(value, task.repeat_frequency, task.repeat_interval_days)

    next_task = Task(
        content=task.content,
        id=generate_task_id(project.id, {t.id for t in project.all_tasks()}),
        status="todo",
        due_date=advance(task.due_date),
        scheduled_date=advance(task.scheduled_date),
        repeat_frequency=task.repeat_frequency,
        repeat_interval_days=task.repeat_interval_days,
        parent_id=location.parent.id if location.parent else None,
        parent_content=location.parent.content if location.parent else None,
    )

    task.status = "done"
    location.siblings.append(next_task)
    return project, next_task


def update_with_rollover(project: Project, task_id: str, **changes) -> Project:
    """
    Apply ``update_task`` changes; if they mark a recurring task done, roll it
    over through handle_recurring instead of a plain status change.

    Re-marking an already-done task done is a plain update.
    """
    task = project.find_by_id(task_id)
    if task is None:
        raise NotFoundError(f"Task '{task_id}' not found")

    if changes.get("status") != "done" or task.status == "done":
        return update_task(project, task_id, **changes)

    others = {key: value for key, value in changes.items() if key != "status"}
    updated = update_task(project, task_id, **others) if others else project
    if not updated.find_by_id(task_id).is_recurring:
        return update_task(updated, task_id, status="done")
    updated, _ = handle_recurring(updated, task_id)
    return updated
