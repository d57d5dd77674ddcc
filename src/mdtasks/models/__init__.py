from .task import (
    DEFAULT_GROUP_NAME,
    INDENT,
    MAX_NESTING_LEVEL,
    REPEAT_FREQUENCIES,
    TASK_STATUSES,
    Group,
    Project,
    Task,
    TaskLocation,
    refresh_parent_content,
)
from .snapshot import project_from_dict, project_to_dict, task_to_dict

__all__ = [
    "DEFAULT_GROUP_NAME",
    "INDENT",
    "MAX_NESTING_LEVEL",
    "REPEAT_FREQUENCIES",
    "TASK_STATUSES",
    "Group",
    "Project",
    "Task",
    "TaskLocation",
    "refresh_parent_content",
    "project_from_dict",
    "project_to_dict",
    "task_to_dict",
]
