"""
In-memory structured project store.

Projects are kept by id and tasks are addressed by their generated ids.
Every call holds _lock (threading.RLock); mutators return a new Project, which
replaces the stored one only after the mutator returns without raising.
"""

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from mdtasks.engine import mutations
from mdtasks.engine.errors import EngineError, InvalidFieldError, NotFoundError
from mdtasks.engine.recurrence import handle_recurring, update_with_rollover
from mdtasks.engine.validation import validate_task_content
from mdtasks.models.snapshot import project_from_dict, project_to_dict
from mdtasks.models.task import Group, Project, Task

log = logging.getLogger(__name__)


class MemoryProjectStore:
    """Thread-safe store of Project snapshots keyed by project id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._projects: Dict[str, Project] = {}

    def _get(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise NotFoundError(f"Project '{project_id}' not found")
        return project

    def _commit(self, project_id: str, operation: str, apply: Callable[[Project], Any]) -> Any:
        """
        Run ``apply`` on the current snapshot. It returns either a Project or a
        (Project, result) tuple; the Project is stored and the result returned.
        """
        with self._lock:
            current = self._get(project_id)
            try:
                outcome = apply(current)
            except EngineError as e:
                log.warning("%s failed on project '%s': %s", operation, project_id, e)
                raise
            if isinstance(outcome, tuple):
                project, result = outcome
            else:
                project, result = outcome, outcome
            self._projects[project_id] = project
        log.debug("%s committed on project '%s'", operation, project_id)
        return copy.deepcopy(result)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> List[Project]:
        with self._lock:
            return [copy.deepcopy(p) for p in self._projects.values()]

    def get_project(self, project_id: str) -> Project:
        with self._lock:
            return copy.deepcopy(self._get(project_id))

    def create_project(self, title: str, project_id: Optional[str] = None) -> Project:
        project = mutations.create_project(title, project_id)
        with self._lock:
            if project.id in self._projects:
                raise InvalidFieldError(f"Project '{project.id}' already exists")
            self._projects[project.id] = project
        log.info("Created project '%s'", project.id)
        return copy.deepcopy(project)

    def delete_project(self, project_id: str) -> None:
        with self._lock:
            self._get(project_id)
            del self._projects[project_id]
        log.info("Deleted project '%s'", project_id)

    def load_snapshot(self, data: Dict[str, Any]) -> Project:
        """Import (or replace) a project from a plain-record snapshot."""
        project = project_from_dict(data)
        with self._lock:
            self._projects[project.id] = project
        return copy.deepcopy(project)

    def export_snapshot(self, project_id: str) -> Dict[str, Any]:
        with self._lock:
            return project_to_dict(self._get(project_id))

    def update_title(self, project_id: str, title: str) -> Project:
        return self._commit(
            project_id,
            "update_title",
            lambda p: mutations.update_project_title(p, title),
        )

    # ------------------------------------------------------------------
    # Tasks (id-addressed)
    # ------------------------------------------------------------------

    def add_task(
        self,
        project_id: str,
        content: str,
        *,
        status: str = "todo",
        due_date: Optional[str] = None,
        scheduled_date: Optional[str] = None,
        repeat_frequency: Optional[str] = None,
        repeat_interval_days: Optional[int] = None,
        group_id: Optional[str] = None,
        parent_id: Optional[str] = None,
    ) -> Task:
        content = validate_task_content(content)
        return self._commit(
            project_id,
            "add_task",
            lambda p: mutations.add_task(
                p,
                group_id,
                content,
                status=status,
                due_date=due_date,
                parent_id=parent_id,
                repeat_frequency=repeat_frequency,
                scheduled_date=scheduled_date,
                repeat_interval_days=repeat_interval_days,
            ),
        )

    def update_task(self, project_id: str, task_id: str, **changes) -> Project:
        """Merge field changes; marking a recurring task done rolls it over."""
        if "content" in changes:
            changes["content"] = validate_task_content(changes["content"])
        return self._commit(
            project_id,
            "update_task",
            lambda p: update_with_rollover(p, task_id, **changes),
        )

    def delete_task(self, project_id: str, task_id: str) -> Project:
        return self._commit(project_id, "delete_task", lambda p: mutations.delete_task(p, task_id))

    def move_to_parent(
        self,
        project_id: str,
        group_id: str,
        task_id: str,
        new_parent_id: Optional[str],
    ) -> Project:
        return self._commit(
            project_id,
            "move_to_parent",
            lambda p: mutations.move_to_parent(p, group_id, task_id, new_parent_id),
        )

    def move_to_group(
        self,
        project_id: str,
        from_group_id: str,
        to_group_id: str,
        task_id: str,
    ) -> Project:
        return self._commit(
            project_id,
            "move_to_group",
            lambda p: mutations.move_to_group(p, from_group_id, to_group_id, task_id),
        )

    def reorder(self, project_id: str, group_id: str, task_ids: List[str]) -> Project:
        return self._commit(
            project_id, "reorder", lambda p: mutations.reorder(p, group_id, task_ids)
        )

    def handle_recurring(self, project_id: str, task_id: str) -> Task:
        return self._commit(
            project_id, "handle_recurring", lambda p: handle_recurring(p, task_id)
        )

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def add_group(self, project_id: str, name: str) -> Group:
        return self._commit(project_id, "add_group", lambda p: mutations.add_group(p, name))

    def rename_group(self, project_id: str, group_id: str, name: str) -> Project:
        return self._commit(
            project_id, "rename_group", lambda p: mutations.rename_group(p, group_id, name)
        )

    def delete_group(self, project_id: str, group_id: str) -> Project:
        return self._commit(
            project_id, "delete_group", lambda p: mutations.delete_group(p, group_id)
        )
