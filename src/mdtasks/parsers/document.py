"""
Parser for task documents.

Main API:
    parse_document(text, project_id) -> Project

Dialect:
- The first ``# Title`` line is the project title (falls back to the supplied
  title, then to the project id).
- ``## Todo`` / ``## Doing`` / ``## Done`` (any case) are status headers: they
  set the status applied to unchecked items that follow, and do not open a
  group.
- Every other ``##`` header, and every ``###`` header, opens a new Group.
  Deeper headers are ignored.
- ``- [ ] text``, ``- [x] text`` and ``- [/] text`` are task lines. ``[x]`` is
  done, ``[/]`` is doing, ``[ ]`` takes the current status header (todo by
  default). An explicit glyph always beats the header, and the header beats a
  blank box: an unchecked item under ``## Done`` parses as done.
- Each 4 spaces (or one tab) of indentation is one nesting level. An item
  attaches to the most recent item with a smaller indentation.
- Anything else is ignored.

Task ids are derived from the 1-indexed line number: ``{project_id}-{line}``.
"""

import re
from typing import List, Optional, Tuple

from mdtasks.engine.errors import MalformedDateError, StructuralLimitError
from mdtasks.models.task import (
    DEFAULT_GROUP_NAME,
    INDENT,
    MAX_NESTING_LEVEL,
    TASK_STATUSES,
    Group,
    Project,
    Task,
)
from mdtasks.parsers.tags import extract_tags
from mdtasks.utils.ids import default_group_id, indexed_group_id, line_task_id

_TASK_LINE = re.compile(r"^([ \t]*)- \[([x /])\] (.*)$")
_HEADING = re.compile(r"^(#+)\s+(.*)$")

# Checkbox char -> status; a blank box defers to the status header
_CHECKBOX_STATUS = {
    "x": "done",
    "/": "doing",
}


# ---------------------------------------------------------------------------
# Low-level parsers
# ---------------------------------------------------------------------------

def indent_level(indent_str: str) -> int:
    """Convert a leading-whitespace string to a 0-based indent level."""
    return len(indent_str.replace("\t", INDENT)) // len(INDENT)


def parse_heading(stripped: str) -> Optional[Tuple[int, str]]:
    """Return (level, text) or None if the line is not a heading."""
    m = _HEADING.match(stripped)
    if not m:
        return None
    return len(m.group(1)), m.group(2).strip()


def parse_task_line(line: str) -> Optional[dict]:
    """Return the raw pieces of a checkbox line, or None if it is not one."""
    m = _TASK_LINE.match(line)
    if not m:
        return None
    return {
        "indent_level": indent_level(m.group(1)),
        "checkbox": m.group(2),
        "text": m.group(3),
    }


def status_header(level: int, text: str) -> Optional[str]:
    """Return the status named by a ``##`` status header, else None."""
    if level != 2:
        return None
    word = text.strip().lower()
    return word if word in TASK_STATUSES else None


# ---------------------------------------------------------------------------
# Main parse API
# ---------------------------------------------------------------------------

def parse_document(
    text: str,
    project_id: str,
    fallback_title: Optional[str] = None,
    path: Optional[str] = None,
) -> Project:
    """
    Parse document text into a Project.

    Args:
        text: Full document text
        project_id: Stable project id; also the prefix of every task id
        fallback_title: Title used when the document has no H1
        path: Source path, recorded on the Project

    Returns:
        Project with at least one Group

    Raises:
        StructuralLimitError: an item would sit deeper than MAX_NESTING_LEVEL
        MalformedDateError: a date tag is not a real calendar date
    """
    title: Optional[str] = None
    groups: List[Group] = []
    current_group: Optional[Group] = None
    status_context = "todo"
    task_stack: List[Tuple[Task, int]] = []

    # Only "\n" ends a line; other Unicode separators are ordinary content
    for line_number, line in enumerate(text.split("\n"), start=1):
        line = line.rstrip("\r")
        stripped = line.strip()
        if not stripped:
            continue

        heading = parse_heading(stripped)
        if heading:
            level, heading_text = heading
            if level == 1:
                if title is None:
                    title = heading_text
                continue

            section_status = status_header(level, heading_text)
            if section_status:
                status_context = section_status
                task_stack.clear()
            elif level in (2, 3):
                current_group = Group(
                    id=indexed_group_id(project_id, len(groups)),
                    name=heading_text,
                )
                groups.append(current_group)
                status_context = "todo"
                task_stack.clear()
            continue

        parsed = parse_task_line(line)
        if parsed is None:
            continue

        while task_stack and task_stack[-1][1] >= parsed["indent_level"]:
            task_stack.pop()

        if len(task_stack) >= MAX_NESTING_LEVEL:
            raise StructuralLimitError(
                f"Line {line_number}: Maximum nesting level ({MAX_NESTING_LEVEL}) exceeded",
                line_number=line_number,
            )

        try:
            tags = extract_tags(parsed["text"])
        except MalformedDateError as e:
            raise MalformedDateError(f"Line {line_number}: {e}") from e

        parent = task_stack[-1][0] if task_stack else None
        task = Task(
            content=tags.content,
            id=line_task_id(project_id, line_number),
            status=_CHECKBOX_STATUS.get(parsed["checkbox"], status_context),
            due_date=tags.due_date,
            scheduled_date=tags.scheduled_date,
            repeat_frequency=tags.repeat_frequency,
            repeat_interval_days=tags.repeat_interval_days,
            parent_id=parent.id if parent else None,
            parent_content=parent.content if parent else None,
            raw_line=line,
            line_number=line_number,
        )

        if parent:
            parent.subtasks.append(task)
        else:
            if current_group is None:
                # Tasks before any group header: implicit Default group
                current_group = Group(id=default_group_id(project_id), name=DEFAULT_GROUP_NAME)
                groups.append(current_group)
            current_group.tasks.append(task)

        task_stack.append((task, parsed["indent_level"]))

    if not groups:
        groups.append(Group(id=default_group_id(project_id), name=DEFAULT_GROUP_NAME))

    return Project(
        id=project_id,
        title=title if title is not None else (fallback_title or project_id),
        groups=groups,
        path=path,
    )
