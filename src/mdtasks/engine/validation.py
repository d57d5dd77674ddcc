"""
Field validation for task and project data.

These checks run at the boundary, before a mutation is committed. The tag
extractor is deliberately tolerant, so content that carries more than one tag
of a kind is rejected here instead of being silently accepted.
"""

import re
from typing import Optional

from mdtasks.engine.errors import InvalidFieldError, MalformedDateError, StructuralLimitError
from mdtasks.models.task import MAX_NESTING_LEVEL, REPEAT_FREQUENCIES, TASK_STATUSES, Project
from mdtasks.parsers.tags import TAG_MARKERS, count_tags
from mdtasks.utils.dates import ISO_DATE_PATTERN, is_iso_date

MAX_CONTENT_LENGTH = 500
MAX_PROJECT_TITLE_LENGTH = 100
MAX_GROUP_NAME_LENGTH = 100

# Length is checked first, so these only ever see bounded input
DANGEROUS_PATTERNS = [
    re.compile(r"<script\b[^>]{0,100}>[\s\S]{0,1000}</script>", re.IGNORECASE),
    re.compile(r"<iframe\b[^>]{0,100}>[\s\S]{0,1000}</iframe>", re.IGNORECASE),
    re.compile(r"<object\b[^>]{0,100}>[\s\S]{0,1000}</object>", re.IGNORECASE),
    re.compile(r"<embed\b[^>]{0,100}>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
]

# Every character str.splitlines() treats as a line boundary
_LINE_BREAK = re.compile(r"[\n\r\x0b\x0c\x1c-\x1e\x85\u2028\u2029]")


def _check_text(value: str, field_name: str, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidFieldError(f"{field_name} cannot be empty")

    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise InvalidFieldError(f"{field_name} is too long (max {max_length} characters)")

    if _LINE_BREAK.search(trimmed):
        raise InvalidFieldError(f"{field_name} cannot contain line breaks")

    for pattern in DANGEROUS_PATTERNS:
        if pattern.search(trimmed):
            raise InvalidFieldError(
                f"{field_name} contains potentially dangerous HTML/JavaScript code"
            )
    return trimmed


def validate_task_content(content: str) -> str:
    """
    Validate task content and return it trimmed.

    Raises:
        InvalidFieldError: empty, too long, multi-line, unsafe markup, or more
            than one tag of the same kind.
    """
    trimmed = _check_text(content, "Task content", MAX_CONTENT_LENGTH)
    for kind, count in count_tags(trimmed).items():
        if count > 1:
            raise InvalidFieldError(
                f"Task content cannot contain multiple {TAG_MARKERS[kind]} tags"
            )
    return trimmed


def validate_project_title(title: str) -> str:
    return _check_text(title, "Project title", MAX_PROJECT_TITLE_LENGTH)


def validate_group_name(name: str) -> str:
    return _check_text(name, "Group name", MAX_GROUP_NAME_LENGTH)


def validate_status(status: str) -> str:
    if status not in TASK_STATUSES:
        raise InvalidFieldError(
            f"Invalid status '{status}'. Must be one of: {', '.join(TASK_STATUSES)}"
        )
    return status


def validate_date(value: Optional[str], field_name: str = "Date") -> Optional[str]:
    """
    Accept None/"" as absent; otherwise require a real YYYY-MM-DD date.

    Raises:
        MalformedDateError
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        raise MalformedDateError(f"{field_name} must be in YYYY-MM-DD format: {value!r}")
    if not is_iso_date(value):
        raise MalformedDateError(f"{field_name} is not a valid calendar date: {value}")
    return value


def validate_recurrence(
    repeat_frequency: Optional[str],
    repeat_interval_days: Optional[int] = None,
) -> None:
    """Custom recurrence needs a positive whole-day interval; others ignore it."""
    if repeat_frequency is None:
        return
    if repeat_frequency not in REPEAT_FREQUENCIES:
        raise InvalidFieldError(
            f"Invalid repeat frequency '{repeat_frequency}'. "
            f"Must be one of: {', '.join(REPEAT_FREQUENCIES)}"
        )
    if repeat_frequency == "custom":
        if (
            not isinstance(repeat_interval_days, int)
            or isinstance(repeat_interval_days, bool)
            or repeat_interval_days < 1
        ):
            raise InvalidFieldError("Custom recurrence requires repeat_interval_days >= 1")


def validate_snapshot(project: Project) -> None:
    """Check every task of a loaded snapshot: status, dates, recurrence, depth, unique ids."""
    seen = set()
    for location in project.iter_locations():
        task = location.task
        if location.depth >= MAX_NESTING_LEVEL:
            raise StructuralLimitError(
                f"Task '{task.id}' exceeds maximum nesting level ({MAX_NESTING_LEVEL})"
            )
        if task.id in seen:
            raise InvalidFieldError(f"Duplicate task id '{task.id}'")
        seen.add(task.id)
        validate_status(task.status)
        validate_date(task.due_date, "Due date")
        validate_date(task.scheduled_date, "Scheduled date")
        validate_recurrence(task.repeat_frequency, task.repeat_interval_days)
