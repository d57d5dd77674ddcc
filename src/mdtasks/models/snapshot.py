"""
Plain-record snapshots of the task tree.

Structured stores and transports exchange projects as nested dicts using the
camelCase field names of the tree snapshot format. Absent optional fields are
omitted on output and tolerated on input.
"""

from typing import Any, Dict, Optional

from mdtasks.models.task import Group, Project, Task, refresh_parent_content

_OPTIONAL_TASK_FIELDS = (
    ("dueDate", "due_date"),
    ("scheduledDate", "scheduled_date"),
    ("repeatFrequency", "repeat_frequency"),
    ("repeatIntervalDays", "repeat_interval_days"),
    ("parentId", "parent_id"),
    ("parentContent", "parent_content"),
)


def task_to_dict(task: Task, include_subtasks: bool = True) -> Dict[str, Any]:
    """Serialize a Task to a JSON-serializable dict."""
    d: Dict[str, Any] = {
        "id": task.id,
        "content": task.content,
        "status": task.status,
    }
    for key, attr in _OPTIONAL_TASK_FIELDS:
        value = getattr(task, attr)
        if value is not None:
            d[key] = value
    if task.line_number:
        d["lineNumber"] = task.line_number
        d["rawLine"] = task.raw_line
    if include_subtasks:
        d["subtasks"] = [task_to_dict(child) for child in task.subtasks]
    return d


def group_to_dict(group: Group) -> Dict[str, Any]:
    return {
        "id": group.id,
        "name": group.name,
        "tasks": [task_to_dict(task) for task in group.tasks],
    }


def project_to_dict(project: Project) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": project.id,
        "title": project.title,
        "groups": [group_to_dict(group) for group in project.groups],
    }
    if project.path:
        d["path"] = project.path
    return d


def task_from_dict(data: Dict[str, Any]) -> Task:
    """
    Build a Task (and its subtree) from a plain record.

    Field validation is left to validate_snapshot() so that a whole project
    is checked in one pass.
    """
    task = Task(
        content=data["content"],
        id=data.get("id", ""),
        status=data.get("status", "todo"),
        subtasks=[task_from_dict(child) for child in data.get("subtasks", [])],
        raw_line=data.get("rawLine", ""),
        line_number=data.get("lineNumber", 0),
    )
    for key, attr in _OPTIONAL_TASK_FIELDS:
        if data.get(key) is not None:
            setattr(task, attr, data[key])
    return task


def group_from_dict(data: Dict[str, Any]) -> Group:
    return Group(
        id=data["id"],
        name=data["name"],
        tasks=[task_from_dict(task) for task in data.get("tasks", [])],
    )


def project_from_dict(data: Dict[str, Any]) -> Project:
    """
    Load a Project snapshot, validating every task and recomputing the
    denormalized parent fields.
    """
    from mdtasks.engine.validation import validate_snapshot

    project = Project(
        id=data["id"],
        title=data.get("title") or data["id"],
        groups=[group_from_dict(group) for group in data.get("groups", [])],
        path=data.get("path"),
    )
    validate_snapshot(project)
    refresh_parent_content(project)
    return project


def summarize_project(project: Project, path: Optional[str] = None) -> Dict[str, Any]:
    """Small listing record: id, title, group names and task counts."""
    all_tasks = project.all_tasks()
    return {
        "id": project.id,
        "title": project.title,
        "path": path or project.path,
        "groups": [{"id": g.id, "name": g.name} for g in project.groups],
        "task_count": len(all_tasks),
        "open_count": sum(1 for t in all_tasks if t.status != "done"),
    }
