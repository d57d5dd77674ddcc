"""
Date parsing and formatting utilities.

Pure functions, no external dependencies. Engine code only ever stores ISO
``YYYY-MM-DD`` strings; parse_date() is the lenient entry point used by the
transports to normalize user input before it reaches the engine.
"""

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_date(value: str) -> Optional[date]:
    """Return the date for an ISO ``YYYY-MM-DD`` string, or None if invalid."""
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def is_iso_date(value: str) -> bool:
    return to_date(value) is not None


def add_months(start: date, months: int) -> date:
    """
    Same day-of-month ``months`` later, clamped to the last day of the target
    month (Jan 31 + 1 month -> Feb 28, or Feb 29 in a leap year).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return start.replace(year=year, month=month, day=min(start.day, last_day))


def parse_date(date_str: str, today: Optional[date] = None) -> Optional[str]:
    """
    Parse various date formats into ISO 8601 (YYYY-MM-DD).

    Supports:
    - ISO 8601: "2026-02-15"
    - Natural language: "today", "tomorrow", "Friday", "next Monday"
    - Relative: "in 3 days", "in 2 weeks"
    - Prose prefixes: "before March 15", "by Friday", "due Friday"
    - Urgency: "ASAP", "immediately", "urgent"

    Returns:
        ISO 8601 date string or None if unparseable
    """
    if not date_str:
        return None

    date_str = date_str.strip()
    today = today or datetime.now().date()

    if date_str.lower() in ("asap", "immediately", "urgent", "now", "today"):
        return today.isoformat()
    if date_str.lower() == "tomorrow":
        return (today + timedelta(days=1)).isoformat()

    for prefix in ("before ", "by ", "due ", "on "):
        if date_str.lower().startswith(prefix):
            date_str = date_str[len(prefix):].strip()

    parsed_iso = to_date(date_str)
    if parsed_iso:
        return parsed_iso.isoformat()
    if ISO_DATE_PATTERN.match(date_str):
        # Right shape, impossible calendar date
        return None

    for fmt in ("%B %d", "%b %d", "%m/%d", "%B %d, %Y", "%b %d, %Y"):
        try:
            parsed = datetime.strptime(date_str, fmt).date()
            if parsed.year == 1900:
                parsed = parsed.replace(year=today.year)
                if parsed < today:
                    parsed = parsed.replace(year=today.year + 1)
            return parsed.isoformat()
        except ValueError:
            continue

    day_names = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    date_lower = date_str.lower()
    is_next = date_lower.startswith("next ")
    if is_next:
        date_lower = date_lower[5:].strip()

    for i, day_name in enumerate(day_names):
        if date_lower == day_name:
            days_ahead = i - today.weekday()
            if days_ahead <= 0 or is_next:
                days_ahead += 7
            return (today + timedelta(days=days_ahead)).isoformat()

    relative_match = re.match(r"in (\d+) (days?|weeks?)$", date_lower)
    if relative_match:
        amount = int(relative_match.group(1))
        unit = relative_match.group(2)
        delta = timedelta(weeks=amount) if unit.startswith("week") else timedelta(days=amount)
        return (today + delta).isoformat()

    return None


def due_status(due_date: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """Classify a due date as "overdue", "today" or "upcoming" (None if unset/invalid)."""
    due = to_date(due_date) if due_date else None
    if due is None:
        return None
    today = today or datetime.now().date()
    if due < today:
        return "overdue"
    if due == today:
        return "today"
    return "upcoming"
