"""
Id generation for structured-mode tasks, groups and projects.
"""

import re
import secrets
from typing import Container


def generate_token(length: int = 8) -> str:
    """Cryptographically random lowercase hex string of ``length`` characters."""
    return secrets.token_hex((length + 1) // 2)[:length]


def generate_task_id(project_id: str, existing: Container[str] = ()) -> str:
    """
    Generate an opaque task id scoped to a project, e.g. "groceries-a7f3c2e1".

    Retries until the id is not in ``existing``.
    """
    new_id = f"{project_id}-{generate_token()}"
    while new_id in existing:
        new_id = f"{project_id}-{generate_token()}"
    return new_id


def line_task_id(project_id: str, line_number: int) -> str:
    """File-mode task id derived from the task's 1-indexed source line."""
    return f"{project_id}-{line_number}"


def default_group_id(project_id: str) -> str:
    return f"{project_id}-default-group"


def indexed_group_id(project_id: str, index: int) -> str:
    return f"{project_id}-group-{index}"


def slugify(title: str) -> str:
    """Lowercase, non-alphanumerics collapsed to '-', falling back to 'untitled'."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "untitled"
