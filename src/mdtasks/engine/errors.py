"""
Typed failures raised by the task-tree engine.

All engine errors are local and deterministic. Callers translate them into
transport responses (see tools/task_tools.py and api/task_routes.py).
"""

from typing import Optional


class EngineError(Exception):
    """Base class for every failure the engine reports."""


class NotFoundError(EngineError):
    """A group, task, parent or line number does not exist."""


class NotRecurringError(EngineError):
    """Recurrence was requested on a task without a repeat frequency."""


class StructuralLimitError(EngineError):
    """Nesting deeper than MAX_NESTING_LEVEL."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.line_number = line_number


class MalformedDateError(EngineError, ValueError):
    """A date string is not YYYY-MM-DD or not a real calendar date."""


class InvalidFieldError(EngineError, ValueError):
    """A task or project field failed validation."""


class InvalidMoveError(EngineError):
    """A task cannot be moved under itself or one of its descendants."""
