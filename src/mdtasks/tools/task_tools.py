"""
Project and task tool handlers.

Core logic lives in handle_* functions (return dicts, shared by MCP tools and
the REST API). Engine errors propagate out of the handlers; the MCP wrappers
in register_task_tools() turn them into {"error": ...} JSON and the REST
routes into HTTP errors.

Tasks are addressed by the line number they sit on in the project document.
"""

import json
import logging
from typing import Callable, List, Optional

from mcp.server.fastmcp import FastMCP

from mdtasks.engine.errors import EngineError, MalformedDateError
from mdtasks.engine.mutations import flatten_tasks
from mdtasks.models.snapshot import group_to_dict, project_to_dict, summarize_project, task_to_dict
from mdtasks.utils.dates import due_status, parse_date

log = logging.getLogger(__name__)


def _normalize_date(value: Optional[str], field_name: str) -> Optional[str]:
    """
    Turn user date input ("tomorrow", "in 3 days", "2026-03-01") into ISO.

    None means "not given" and "" means "clear"; both pass through.
    """
    if value is None or value == "":
        return value
    parsed = parse_date(value)
    if parsed is None:
        raise MalformedDateError(f"Unrecognized {field_name} date: {value!r}")
    return parsed


def _project_result(project) -> dict:
    return project_to_dict(project)


# ---------------------------------------------------------------------------
# Handler functions (return dicts, shared by MCP tools and REST API)
# ---------------------------------------------------------------------------


def handle_project_list(store) -> list[dict]:
    return [summarize_project(p) for p in store.list_projects()]


def handle_project_get(store, *, project_id: str) -> dict:
    return _project_result(store.get_project(project_id))


def handle_project_create(store, *, title: str, project_id: Optional[str] = None) -> dict:
    return _project_result(store.create_project(title, project_id))


def handle_project_raw(store, *, project_id: str) -> dict:
    return {"id": project_id, "content": store.get_raw(project_id)}


def handle_project_save_raw(store, *, project_id: str, content: str) -> dict:
    return _project_result(store.save_raw(project_id, content))


def handle_task_list(
    store,
    *,
    project_id: str,
    status: Optional[str] = None,
) -> list[dict]:
    """
    Flat, depth-first task list of one project.

    ``status`` is a comma-separated filter ("todo,doing"); omit for all.
    """
    wanted = {s.strip() for s in status.split(",") if s.strip()} if status else None
    results = []
    for task in flatten_tasks(store.get_project(project_id)):
        if wanted and task.status not in wanted:
            continue
        d = task_to_dict(task, include_subtasks=False)
        d["dueStatus"] = due_status(task.due_date)
        results.append(d)
    return results


def handle_task_add(
    store,
    *,
    project_id: str,
    content: str,
    status: str = "todo",
    due: Optional[str] = None,
    scheduled: Optional[str] = None,
    repeat: Optional[str] = None,
    repeat_interval_days: Optional[int] = None,
    group_id: Optional[str] = None,
    parent_line: Optional[int] = None,
) -> dict:
    task = store.add_task(
        project_id,
        content,
        status=status,
        due_date=_normalize_date(due, "due") or None,
        scheduled_date=_normalize_date(scheduled, "scheduled") or None,
        repeat_frequency=repeat or None,
        repeat_interval_days=repeat_interval_days,
        group_id=group_id,
        parent_line_number=parent_line,
    )
    result = task_to_dict(task)
    result["projectId"] = project_id
    return result


def handle_task_update(
    store,
    *,
    project_id: str,
    line_number: int,
    content: Optional[str] = None,
    status: Optional[str] = None,
    due: Optional[str] = None,
    scheduled: Optional[str] = None,
    repeat: Optional[str] = None,
    repeat_interval_days: Optional[int] = None,
) -> dict:
    """Only the given fields change; "" clears due, scheduled or repeat."""
    changes = {}
    if content is not None:
        changes["content"] = content
    if status is not None:
        changes["status"] = status
    if due is not None:
        changes["due_date"] = _normalize_date(due, "due")
    if scheduled is not None:
        changes["scheduled_date"] = _normalize_date(scheduled, "scheduled")
    if repeat is not None:
        changes["repeat_frequency"] = repeat or None
    if repeat_interval_days is not None:
        changes["repeat_interval_days"] = repeat_interval_days

    return _project_result(store.update_task(project_id, line_number, **changes))


def handle_task_delete(store, *, project_id: str, line_number: int) -> dict:
    return _project_result(store.delete_task(project_id, line_number))


def handle_task_move(
    store,
    *,
    project_id: str,
    line_number: int,
    parent_line: Optional[int] = None,
    to_group_id: Optional[str] = None,
) -> dict:
    """
    Move a task. With ``to_group_id`` it becomes a root task of that group;
    otherwise it is re-attached under ``parent_line`` (root of its own group
    when omitted).
    """
    if to_group_id is not None:
        project = store.move_to_group(project_id, line_number, to_group_id)
    else:
        project = store.move_to_parent(project_id, line_number, parent_line)
    return _project_result(project)


def handle_task_reorder(
    store,
    *,
    project_id: str,
    group_id: str,
    line_numbers: List[int],
) -> dict:
    return _project_result(store.reorder(project_id, group_id, line_numbers))


def handle_task_complete_recurring(store, *, project_id: str, line_number: int) -> dict:
    task = store.handle_recurring(project_id, line_number)
    result = task_to_dict(task)
    result["projectId"] = project_id
    return result


def handle_group_add(store, *, project_id: str, name: str) -> dict:
    return group_to_dict(store.add_group(project_id, name))


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def _run(handler: Callable, *args, **kwargs) -> str:
    try:
        result = handler(*args, **kwargs)
    except EngineError as e:
        log.info("%s rejected: %s", handler.__name__, e)
        result = {"error": str(e)}
    return json.dumps(result, indent=2)


def register_task_tools(mcp: FastMCP, store) -> None:
    """Register all project and task MCP tools onto the FastMCP instance."""

    @mcp.tool()
    def project_list() -> str:
        """
        List all projects.

        Returns:
            JSON array of {id, title, path, groups, task_count, open_count}
        """
        return _run(handle_project_list, store)

    @mcp.tool()
    def project_get(project_id: str) -> str:
        """
        Get a project's full task tree.

        Every task carries its lineNumber; use it to address the task in
        the other task_* tools. Line numbers change after every edit, so
        re-read the project before chaining edits.

        Args:
            project_id: Project id (the document name without ".md")

        Returns:
            JSON project object with groups and nested subtasks, or error message
        """
        return _run(handle_project_get, store, project_id=project_id)

    @mcp.tool()
    def project_create(title: str, project_id: Optional[str] = None) -> str:
        """
        Create an empty project.

        Args:
            title: Display title (also the source of the id when project_id is omitted)
            project_id: Explicit lowercase slug id

        Returns:
            JSON project object
        """
        return _run(handle_project_create, store, title=title, project_id=project_id)

    @mcp.tool()
    def project_raw(project_id: str, content: Optional[str] = None) -> str:
        """
        Read a project's markdown, or replace it when content is given.

        Replacement text must parse (nesting and date tags are checked) or
        nothing is written.

        Args:
            project_id: Project id
            content: New full document text

        Returns:
            JSON {id, content} when reading, the parsed project when writing
        """
        if content is None:
            return _run(handle_project_raw, store, project_id=project_id)
        return _run(handle_project_save_raw, store, project_id=project_id, content=content)

    @mcp.tool()
    def task_list(project_id: str, status: Optional[str] = None) -> str:
        """
        Flat list of a project's tasks in document order.

        Args:
            project_id: Project id
            status: Comma-separated statuses to include (todo, doing, done); omit for all

        Returns:
            JSON array of task objects (no nested subtasks; parentId/parentContent
            identify the parent), each with a dueStatus of overdue/today/upcoming
        """
        return _run(handle_task_list, store, project_id=project_id, status=status)

    @mcp.tool()
    def task_add(
        project_id: str,
        content: str,
        status: str = "todo",
        due: Optional[str] = None,
        scheduled: Optional[str] = None,
        repeat: Optional[str] = None,
        repeat_interval_days: Optional[int] = None,
        group_id: Optional[str] = None,
        parent_line: Optional[int] = None,
    ) -> str:
        """
        Add a task to a project.

        Args:
            project_id: Project id
            content: Task text (max 500 characters, single line)
            status: "todo", "doing" or "done"
            due: Due date ("2026-03-01", "tomorrow", "Friday", "in 3 days")
            scheduled: Date the task is planned to be worked on (same formats)
            repeat: "daily", "weekly", "monthly" or "custom"
            repeat_interval_days: Days between occurrences when repeat is "custom"
            group_id: Target group id (default: first group, or the parent's group)
            parent_line: Line number of the parent task (makes this a subtask)

        Returns:
            JSON of the new task including its lineNumber
        """
        return _run(
            handle_task_add,
            store,
            project_id=project_id,
            content=content,
            status=status,
            due=due,
            scheduled=scheduled,
            repeat=repeat,
            repeat_interval_days=repeat_interval_days,
            group_id=group_id,
            parent_line=parent_line,
        )

    @mcp.tool()
    def task_update(
        project_id: str,
        line_number: int,
        content: Optional[str] = None,
        status: Optional[str] = None,
        due: Optional[str] = None,
        scheduled: Optional[str] = None,
        repeat: Optional[str] = None,
        repeat_interval_days: Optional[int] = None,
    ) -> str:
        """
        Update fields of the task on a given line.

        Marking a recurring task "done" completes it and appends its next
        occurrence with advanced dates.

        Args:
            project_id: Project id
            line_number: Line the task is on
            content: New text
            status: "todo", "doing" or "done"
            due: New due date, or "" to clear
            scheduled: New scheduled date, or "" to clear
            repeat: New repeat frequency, or "" to stop repeating
            repeat_interval_days: Interval for "custom" repeat

        Returns:
            JSON of the updated project, or error message
        """
        return _run(
            handle_task_update,
            store,
            project_id=project_id,
            line_number=line_number,
            content=content,
            status=status,
            due=due,
            scheduled=scheduled,
            repeat=repeat,
            repeat_interval_days=repeat_interval_days,
        )

    @mcp.tool()
    def task_delete(project_id: str, line_number: int) -> str:
        """
        Delete the task on a line together with all of its subtasks.

        Returns:
            JSON of the updated project, or error message
        """
        return _run(handle_task_delete, store, project_id=project_id, line_number=line_number)

    @mcp.tool()
    def task_move(
        project_id: str,
        line_number: int,
        parent_line: Optional[int] = None,
        to_group_id: Optional[str] = None,
    ) -> str:
        """
        Move a task (with its subtasks).

        Args:
            project_id: Project id
            line_number: Line the task is on
            parent_line: New parent's line; omit to make it a root task of its group
            to_group_id: Move to the end of this group as a root task instead

        Returns:
            JSON of the updated project, or error message
        """
        return _run(
            handle_task_move,
            store,
            project_id=project_id,
            line_number=line_number,
            parent_line=parent_line,
            to_group_id=to_group_id,
        )

    @mcp.tool()
    def task_reorder(project_id: str, group_id: str, line_numbers: List[int]) -> str:
        """
        Reorder the root tasks of a group.

        Args:
            project_id: Project id
            group_id: Group whose root tasks are reordered
            line_numbers: Current line numbers of the root tasks in their new order

        Returns:
            JSON of the updated project, or error message
        """
        return _run(
            handle_task_reorder,
            store,
            project_id=project_id,
            group_id=group_id,
            line_numbers=line_numbers,
        )

    @mcp.tool()
    def task_complete_recurring(project_id: str, line_number: int) -> str:
        """
        Complete a recurring task and create its next occurrence.

        Returns:
            JSON of the new occurrence including its lineNumber, or error message
        """
        return _run(
            handle_task_complete_recurring,
            store,
            project_id=project_id,
            line_number=line_number,
        )

    @mcp.tool()
    def group_add(project_id: str, name: str) -> str:
        """
        Append an empty group (a "### name" section) to a project.

        Returns:
            JSON group object with its id, or error message
        """
        return _run(handle_group_add, store, project_id=project_id, name=name)
