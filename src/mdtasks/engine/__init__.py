from .errors import (
    EngineError,
    InvalidFieldError,
    InvalidMoveError,
    MalformedDateError,
    NotFoundError,
    NotRecurringError,
    StructuralLimitError,
)

__all__ = [
    "EngineError",
    "InvalidFieldError",
    "InvalidMoveError",
    "MalformedDateError",
    "NotFoundError",
    "NotRecurringError",
    "StructuralLimitError",
]
