"""
Inline tag extraction and composition.

Recognised tags (whitespace-delimited, anywhere in the item text):

    #do:YYYY-MM-DD        scheduled date
    #due:YYYY-MM-DD       due date
    #repeat:daily|weekly|monthly
    #repeat:every_N_days  custom recurrence, N >= 1

extract_tags() is tolerant: the first occurrence of each kind wins and every
occurrence is stripped from the content. Rejecting duplicate tags is the job
of engine.validation.validate_task_content, which callers run before a
mutation is committed.

compose_tags() is the inverse and always renders in the fixed order
#do, #due, #repeat.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from mdtasks.engine.errors import MalformedDateError
from mdtasks.utils.dates import is_iso_date

# A tag must stand alone: start of text or whitespace before, whitespace or end
# of text after
_SCHEDULED_PATTERN = re.compile(r"(?<!\S)#do:(\d{4}-\d{2}-\d{2})(?!\S)")
_DUE_PATTERN = re.compile(r"(?<!\S)#due:(\d{4}-\d{2}-\d{2})(?!\S)")
_REPEAT_PATTERN = re.compile(
    r"(?<!\S)#repeat:(daily|weekly|monthly|every_([1-9]\d*)_days)(?!\S)"
)

# Raw markers, used to count tag occurrences during validation
TAG_MARKERS = {
    "do": "#do:",
    "due": "#due:",
    "repeat": "#repeat:",
}


@dataclass
class ExtractedTags:
    """Tag-stripped content plus the structured values found in it."""

    content: str
    due_date: Optional[str] = None
    scheduled_date: Optional[str] = None
    repeat_frequency: Optional[str] = None
    repeat_interval_days: Optional[int] = None


def _take(pattern: re.Pattern, text: str) -> Tuple[str, Optional[re.Match]]:
    """
    Return (text with every match removed, first match or None).

    The whitespace on both sides of a removed tag collapses to a single space;
    spacing elsewhere in the text is left alone.
    """
    matches = list(pattern.finditer(text))
    if not matches:
        return text, None

    pieces = []
    start = 0
    for match in matches:
        pieces.append(text[start:match.start()])
        start = match.end()
    pieces.append(text[start:])

    result = pieces[0]
    for piece in pieces[1:]:
        left, right = result.rstrip(), piece.lstrip()
        result = f"{left} {right}" if left and right else left + right
    return result, matches[0]


def _checked_date(match: Optional[re.Match], tag: str) -> Optional[str]:
    if match is None:
        return None
    value = match.group(1)
    if not is_iso_date(value):
        raise MalformedDateError(f"Invalid date in #{tag}: tag: {value}")
    return value


def extract_tags(text: str) -> ExtractedTags:
    """
    Split raw item text into content and tag values.

    Raises:
        MalformedDateError: a date tag has the right shape but is not a real
            calendar date (e.g. #due:2025-02-30).
    """
    text, scheduled = _take(_SCHEDULED_PATTERN, text)
    text, due = _take(_DUE_PATTERN, text)
    text, repeat = _take(_REPEAT_PATTERN, text)

    result = ExtractedTags(
        content=text.strip(),
        due_date=_checked_date(due, "due"),
        scheduled_date=_checked_date(scheduled, "do"),
    )

    if repeat:
        if repeat.group(2):
            result.repeat_frequency = "custom"
            result.repeat_interval_days = int(repeat.group(2))
        else:
            result.repeat_frequency = repeat.group(1)

    return result


def format_repeat(repeat_frequency: Optional[str], repeat_interval_days: Optional[int] = None) -> Optional[str]:
    """Render the value part of a #repeat: tag, or None if nothing to render."""
    if not repeat_frequency:
        return None
    if repeat_frequency == "custom":
        if not repeat_interval_days:
            return None
        return f"every_{repeat_interval_days}_days"
    return repeat_frequency


def compose_tags(
    content: str,
    *,
    due_date: Optional[str] = None,
    scheduled_date: Optional[str] = None,
    repeat_frequency: Optional[str] = None,
    repeat_interval_days: Optional[int] = None,
) -> str:
    """
    Append tags to content in canonical order, separated by single spaces.

    Absent fields are omitted.
    """
    parts = [content]
    if scheduled_date:
        parts.append(f"#do:{scheduled_date}")
    if due_date:
        parts.append(f"#due:{due_date}")
    repeat = format_repeat(repeat_frequency, repeat_interval_days)
    if repeat:
        parts.append(f"#repeat:{repeat}")
    return " ".join(part for part in parts if part)


def count_tags(text: str) -> dict:
    """Count raw occurrences of each tag marker (for duplicate-tag validation)."""
    return {kind: text.count(marker) for kind, marker in TAG_MARKERS.items()}
