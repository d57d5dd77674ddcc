"""
Tree mutator: id-addressed structural edits on a Project.

Every function takes a Project and returns a new one; the input is never
touched, so a raised error leaves the caller's snapshot exactly as it was.
The line-addressed path (engine.file_mode) drives these same functions.

Inline tags in ``content`` are pulled out into fields here, so that a task
added with "Pay rent #due:2025-12-01" ends up the same in both storage modes.
Explicitly passed fields win over tags found in the content.
"""

import copy
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from mdtasks.engine.errors import InvalidFieldError, InvalidMoveError, NotFoundError, StructuralLimitError
from mdtasks.engine.validation import (
    validate_date,
    validate_group_name,
    validate_project_title,
    validate_recurrence,
    validate_status,
)
from mdtasks.models.task import (
    DEFAULT_GROUP_NAME,
    MAX_NESTING_LEVEL,
    Group,
    Project,
    Task,
    TaskLocation,
)
from mdtasks.parsers.tags import extract_tags
from mdtasks.utils.ids import default_group_id, generate_task_id, indexed_group_id, slugify

UPDATABLE_FIELDS = (
    "content",
    "status",
    "due_date",
    "scheduled_date",
    "repeat_frequency",
    "repeat_interval_days",
)

_TAG_FIELDS = ("due_date", "scheduled_date", "repeat_frequency", "repeat_interval_days")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def locate_task(project: Project, task_id: str) -> TaskLocation:
    location = project.locate(task_id)
    if location is None:
        raise NotFoundError(f"Task '{task_id}' not found")
    return location


def find_task(project: Project, task_id: str) -> Task:
    return locate_task(project, task_id).task


def find_group(project: Project, group_id: str) -> Group:
    group = project.find_group(group_id)
    if group is None:
        raise NotFoundError(f"Group '{group_id}' not found")
    return group


def flatten_tasks(project: Project) -> List[Task]:
    """All tasks depth-first in document order, for flat (non-tree) views."""
    return [location.task for location in project.iter_locations()]


def _existing_ids(project: Project) -> set:
    return {task.id for task in project.all_tasks()}


def _split_content(content: str, fields: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Extract inline tags; values already present in ``fields`` take precedence."""
    tags = extract_tags(content)
    merged = dict(fields)
    for name in _TAG_FIELDS:
        if merged.get(name) is None and getattr(tags, name) is not None:
            merged[name] = getattr(tags, name)
    return tags.content, merged


# ---------------------------------------------------------------------------
# Task operations
# ---------------------------------------------------------------------------

def add_task(
    project: Project,
    group_id: Optional[str],
    content: str,
    status: str = "todo",
    due_date: Optional[str] = None,
    parent_id: Optional[str] = None,
    repeat_frequency: Optional[str] = None,
    scheduled_date: Optional[str] = None,
    repeat_interval_days: Optional[int] = None,
) -> Tuple[Project, Task]:
    """
    Append a new task as the last child of ``parent_id``, or as the last root
    task of the group.

    ``group_id`` may be None: the parent's group is used when a parent is
    given, otherwise the first group.

    Returns:
        (new project, the new task)

    Raises:
        NotFoundError: group or parent missing (the parent must live in the group)
        StructuralLimitError: the new task would exceed MAX_NESTING_LEVEL
        MalformedDateError / InvalidFieldError: bad status, date or recurrence,
            or no content left once inline tags are removed
    """
    project = copy.deepcopy(project)

    content, fields = _split_content(content, {
        "due_date": due_date,
        "scheduled_date": scheduled_date,
        "repeat_frequency": repeat_frequency,
        "repeat_interval_days": repeat_interval_days,
    })
    if not content:
        raise InvalidFieldError("Task content cannot be empty")
    validate_status(status)
    validate_date(fields["due_date"], "Due date")
    validate_date(fields["scheduled_date"], "Scheduled date")
    validate_recurrence(fields["repeat_frequency"], fields["repeat_interval_days"])

    group = find_group(project, group_id) if group_id is not None else None

    parent_location = None
    if parent_id is not None:
        parent_location = project.locate(parent_id)
        if parent_location is None or (group is not None and parent_location.group is not group):
            raise NotFoundError(f"Parent task '{parent_id}' not found")
        if parent_location.depth + 1 >= MAX_NESTING_LEVEL:
            raise StructuralLimitError(
                f"Maximum nesting level ({MAX_NESTING_LEVEL}) exceeded"
            )
        group = parent_location.group

    if group is None:
        if not project.groups:
            project.groups.append(Group(id=default_group_id(project.id), name=DEFAULT_GROUP_NAME))
        group = project.groups[0]

    parent = parent_location.task if parent_location else None
    task = Task(
        content=content,
        id=generate_task_id(project.id, _existing_ids(project)),
        status=status,
        due_date=fields["due_date"] or None,
        scheduled_date=fields["scheduled_date"] or None,
        repeat_frequency=fields["repeat_frequency"],
        repeat_interval_days=(
            fields["repeat_interval_days"] if fields["repeat_frequency"] == "custom" else None
        ),
        parent_id=parent.id if parent else None,
        parent_content=parent.content if parent else None,
    )
    (parent.subtasks if parent else group.tasks).append(task)
    return project, task


def update_task(project: Project, task_id: str, **changes: Any) -> Project:
    """
    Merge ``changes`` into a task.

    Accepted keys are UPDATABLE_FIELDS. None (or "") clears an optional field;
    clearing the frequency also clears the interval. Children's
    ``parent_content`` is left alone.

    Raises:
        NotFoundError: no task with ``task_id``
        InvalidFieldError: unknown key, bad status or recurrence, empty content
        MalformedDateError: bad date
    """
    unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
    if unknown:
        raise InvalidFieldError(f"Unknown task field(s): {', '.join(unknown)}")

    project = copy.deepcopy(project)
    task = find_task(project, task_id)

    if "content" in changes:
        if changes["content"] is None:
            raise InvalidFieldError("Task content cannot be empty")
        explicit = {name: changes[name] for name in _TAG_FIELDS if name in changes}
        content, merged = _split_content(changes["content"], explicit)
        if not content:
            raise InvalidFieldError("Task content cannot be empty")
        changes = {**changes, **merged, "content": content}

    if "status" in changes:
        task.status = validate_status(changes["status"])
    if "content" in changes:
        task.content = changes["content"]
    if "due_date" in changes:
        task.due_date = validate_date(changes["due_date"], "Due date")
    if "scheduled_date" in changes:
        task.scheduled_date = validate_date(changes["scheduled_date"], "Scheduled date")
    if "repeat_frequency" in changes:
        task.repeat_frequency = changes["repeat_frequency"] or None
    if "repeat_interval_days" in changes:
        task.repeat_interval_days = changes["repeat_interval_days"]

    if task.repeat_frequency != "custom":
        task.repeat_interval_days = None
    validate_recurrence(task.repeat_frequency, task.repeat_interval_days)
    return project


def delete_task(project: Project, task_id: str) -> Project:
    """Remove a task together with its entire subtree."""
    project = copy.deepcopy(project)
    location = locate_task(project, task_id)
    location.siblings.remove(location.task)
    return project


def move_to_parent(
    project: Project,
    group_id: str,
    task_id: str,
    new_parent_id: Optional[str],
) -> Project:
    """
    Detach a task (with its subtree) and re-attach it as the last child of
    ``new_parent_id``, or as the last root task of the group when None.

    Raises:
        NotFoundError: group missing, or task / new parent not in the group
        InvalidMoveError: the new parent is the task itself or a descendant
        StructuralLimitError: the moved subtree would exceed MAX_NESTING_LEVEL
    """
    project = copy.deepcopy(project)
    group = find_group(project, group_id)

    location = project.locate(task_id)
    if location is None or location.group is not group:
        raise NotFoundError(f"Task '{task_id}' not found in group '{group_id}'")
    task = location.task

    if new_parent_id is None:
        location.siblings.remove(task)
        task.parent_id = None
        task.parent_content = None
        group.tasks.append(task)
        return project

    parent_location = project.locate(new_parent_id)
    if parent_location is None or parent_location.group is not group:
        raise NotFoundError(f"Parent task '{new_parent_id}' not found in group '{group_id}'")

    if any(t is parent_location.task for t in task.all_tasks()):
        raise InvalidMoveError("Cannot move a task under itself or one of its subtasks")

    if parent_location.depth + task.height() >= MAX_NESTING_LEVEL:
        raise StructuralLimitError(
            f"Moving '{task_id}' would exceed maximum nesting level ({MAX_NESTING_LEVEL})"
        )

    new_parent = parent_location.task
    location.siblings.remove(task)
    task.parent_id = new_parent.id
    task.parent_content = new_parent.content
    new_parent.subtasks.append(task)
    return project


def move_to_group(
    project: Project,
    from_group_id: str,
    to_group_id: str,
    task_id: str,
) -> Project:
    """
    Move a task (root or nested) to the end of another group as a root task.

    Raises:
        NotFoundError: either group missing, or the task is not in ``from_group_id``
    """
    project = copy.deepcopy(project)
    source = find_group(project, from_group_id)
    target = find_group(project, to_group_id)

    location = project.locate(task_id)
    if location is None or location.group is not source:
        raise NotFoundError(f"Task '{task_id}' not found in group '{from_group_id}'")

    task = location.task
    location.siblings.remove(task)
    task.parent_id = None
    task.parent_content = None
    target.tasks.append(task)
    return project


def reorder(
    project: Project,
    group_id: str,
    new_order: Sequence[Union[str, Task]],
) -> Project:
    """
    Reorder a group's root tasks.

    ``new_order`` holds task ids or Task objects. Root tasks the caller left
    out keep their relative order after the listed ones; repeated entries
    count once.

    Raises:
        NotFoundError: group missing, or an entry is not a root task of the group
    """
    project = copy.deepcopy(project)
    group = find_group(project, group_id)
    by_id = {task.id: task for task in group.tasks}

    ordered: List[Task] = []
    seen = set()
    for entry in new_order:
        entry_id = entry.id if isinstance(entry, Task) else entry
        if entry_id not in by_id:
            raise NotFoundError(f"Task '{entry_id}' is not a root task of group '{group_id}'")
        if entry_id in seen:
            continue
        seen.add(entry_id)
        ordered.append(by_id[entry_id])

    ordered.extend(task for task in group.tasks if task.id not in seen)
    group.tasks = ordered
    return project


# ---------------------------------------------------------------------------
# Project and group operations
# ---------------------------------------------------------------------------

def create_project(title: str, project_id: Optional[str] = None) -> Project:
    """New project with one empty Default group; the id defaults to slugify(title)."""
    title = validate_project_title(title)
    project_id = project_id or slugify(title)
    return Project(
        id=project_id,
        title=title,
        groups=[Group(id=default_group_id(project_id), name=DEFAULT_GROUP_NAME)],
    )


def update_project_title(project: Project, title: str) -> Project:
    project = copy.deepcopy(project)
    project.title = validate_project_title(title)
    return project


def add_group(project: Project, name: str) -> Tuple[Project, Group]:
    """Append an empty group. Returns (new project, the new group)."""
    name = validate_group_name(name)
    project = copy.deepcopy(project)

    taken = {group.id for group in project.groups}
    index = len(project.groups)
    while indexed_group_id(project.id, index) in taken:
        index += 1

    group = Group(id=indexed_group_id(project.id, index), name=name)
    project.groups.append(group)
    return project, group


def rename_group(project: Project, group_id: str, name: str) -> Project:
    name = validate_group_name(name)
    project = copy.deepcopy(project)
    find_group(project, group_id).name = name
    return project


def delete_group(project: Project, group_id: str) -> Project:
    """
    Delete a group and all of its tasks. Removing the last group leaves a
    fresh empty Default group in its place.
    """
    project = copy.deepcopy(project)
    group = find_group(project, group_id)
    project.groups.remove(group)
    if not project.groups:
        project.groups.append(Group(id=default_group_id(project.id), name=DEFAULT_GROUP_NAME))
    return project
