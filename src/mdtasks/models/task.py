"""
Core task-tree data models.

A Project owns an ordered list of Groups; each Group owns its root Tasks and
each Task owns its subtasks. ``parent_id`` and ``parent_content`` are
back-references kept for flat views only; ownership is always the parent's
``subtasks`` list.

Tree walks use an explicit stack rather than recursion so that deep trees and
move/delete operations never depend on the interpreter's recursion limit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Literal, Optional

TaskStatus = Literal["todo", "doing", "done"]
RepeatFrequency = Literal["daily", "weekly", "monthly", "custom"]

TASK_STATUSES = ("todo", "doing", "done")
REPEAT_FREQUENCIES = ("daily", "weekly", "monthly", "custom")

# Number of nesting levels allowed (root tasks are level 1, i.e. depth 0)
MAX_NESTING_LEVEL = 10

DEFAULT_GROUP_NAME = "Default"
INDENT = "    "  # 4 spaces per level


@dataclass
class Task:
    """A single checkbox item and its subtree."""

    content: str
    id: str = ""
    status: TaskStatus = "todo"
    subtasks: List[Task] = field(default_factory=list)
    due_date: Optional[str] = None
    scheduled_date: Optional[str] = None
    repeat_frequency: Optional[RepeatFrequency] = None
    repeat_interval_days: Optional[int] = None
    parent_id: Optional[str] = None
    parent_content: Optional[str] = None
    raw_line: str = ""
    line_number: int = 0

    @property
    def is_recurring(self) -> bool:
        return self.repeat_frequency is not None

    def all_tasks(self) -> List[Task]:
        """Return this task and all descendants in document order."""
        result: List[Task] = []
        stack = [self]
        while stack:
            task = stack.pop()
            result.append(task)
            stack.extend(reversed(task.subtasks))
        return result

    def height(self) -> int:
        """Number of levels in this subtree (a leaf has height 1)."""
        best = 0
        stack = [(self, 1)]
        while stack:
            task, level = stack.pop()
            best = max(best, level)
            stack.extend((child, level + 1) for child in task.subtasks)
        return best


@dataclass
class Group:
    """A named, ordered collection of root tasks."""

    id: str
    name: str
    tasks: List[Task] = field(default_factory=list)

    def all_tasks(self) -> List[Task]:
        result: List[Task] = []
        for task in self.tasks:
            result.extend(task.all_tasks())
        return result


@dataclass
class TaskLocation:
    """Where a task lives: its owning list, parent (if any), group and depth."""

    task: Task
    siblings: List[Task]
    parent: Optional[Task]
    group: Group
    depth: int


@dataclass
class Project:
    """A single task document."""

    id: str
    title: str
    groups: List[Group] = field(default_factory=list)
    path: Optional[str] = None

    def all_tasks(self) -> List[Task]:
        """Return all tasks across all groups as a flat list."""
        result: List[Task] = []
        for group in self.groups:
            result.extend(group.all_tasks())
        return result

    def iter_locations(self) -> Iterator[TaskLocation]:
        """Yield a TaskLocation for every task, depth-first in document order."""
        for group in self.groups:
            stack = [(task, group.tasks, None, 0) for task in reversed(group.tasks)]
            while stack:
                task, siblings, parent, depth = stack.pop()
                yield TaskLocation(task, siblings, parent, group, depth)
                stack.extend(
                    (child, task.subtasks, task, depth + 1)
                    for child in reversed(task.subtasks)
                )

    def locate(self, task_id: str) -> Optional[TaskLocation]:
        for location in self.iter_locations():
            if location.task.id == task_id:
                return location
        return None

    def find_by_id(self, task_id: str) -> Optional[Task]:
        location = self.locate(task_id)
        return location.task if location else None

    def find_by_line(self, line_number: int) -> Optional[Task]:
        for task in self.all_tasks():
            if task.line_number == line_number:
                return task
        return None

    def find_group(self, group_id: str) -> Optional[Group]:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None


def refresh_parent_content(project: Project) -> None:
    """Recompute every denormalized parent_id / parent_content in place."""
    for location in project.iter_locations():
        task, parent = location.task, location.parent
        task.parent_id = parent.id if parent else None
        task.parent_content = parent.content if parent else None
