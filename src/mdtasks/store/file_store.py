"""
File-backed project store.

Design:
    One ``<project-id>.md`` document per project under ``data_dir``.
    Tasks are addressed by line number (engine.file_mode).
    Lock registry: Dict[Path, threading.Lock], guarded by _registry_lock.

Every read-modify-write on a document runs end-to-end under that document's
lock, so two mutations of one file never interleave while mutations of
different files proceed in parallel.
"""

import logging
import re
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from mdtasks.engine import file_mode
from mdtasks.engine.errors import EngineError, InvalidFieldError, NotFoundError
from mdtasks.engine.mutations import create_project
from mdtasks.engine.validation import validate_task_content
from mdtasks.models.task import Group, Project, Task
from mdtasks.parsers.document import parse_document
from mdtasks.parsers.serializer import serialize_project

log = logging.getLogger(__name__)

PROJECT_SUFFIX = ".md"
_PROJECT_ID = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class FileProjectStore:
    """
    Thread-safe store of task documents on disk.

    All task operations take line numbers as they appear in the current
    document text and return freshly parsed objects.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)
        self._registry_lock = threading.Lock()
        self._locks: Dict[Path, threading.Lock] = {}

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    # ------------------------------------------------------------------
    # Paths and locks
    # ------------------------------------------------------------------

    def _path_for(self, project_id: str) -> Path:
        if not isinstance(project_id, str) or not _PROJECT_ID.match(project_id):
            raise InvalidFieldError(f"Invalid project id: {project_id!r}")
        return self._data_dir / f"{project_id}{PROJECT_SUFFIX}"

    def _lock_for(self, path: Path) -> threading.Lock:
        """
        One lock per path for the life of the store. Entries are never
        removed, so a delete and a later re-create share the same lock.
        """
        with self._registry_lock:
            lock = self._locks.get(path)
            if lock is None:
                lock = threading.Lock()
                self._locks[path] = lock
            return lock

    def _read(self, path: Path, project_id: str) -> str:
        """Read a document; call with its lock held."""
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFoundError(f"Project '{project_id}' not found") from None

    def _parse(self, text: str, project_id: str, path: Path) -> Project:
        return parse_document(text, project_id, fallback_title=project_id, path=str(path))

    def _mutate(
        self,
        project_id: str,
        operation: str,
        apply: Callable[[str], Tuple[str, Optional[int]]],
    ) -> Tuple[Project, Optional[int]]:
        """
        Read, transform and write one document under its lock.

        ``apply`` maps the current text to (new text, line of interest). The
        file is only rewritten when ``apply`` succeeds.
        """
        path = self._path_for(project_id)
        with self._lock_for(path):
            text = self._read(path, project_id)
            try:
                new_text, line_number = apply(text)
            except EngineError as e:
                log.warning("%s failed on project '%s': %s", operation, project_id, e)
                raise
            path.write_text(new_text, encoding="utf-8")
        log.debug("%s committed on project '%s'", operation, project_id)
        return self._parse(new_text, project_id, path), line_number

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> List[Project]:
        """Parse every document in the data dir; unreadable ones are skipped."""
        projects: List[Project] = []
        if not self._data_dir.is_dir():
            return projects
        for path in sorted(self._data_dir.glob(f"*{PROJECT_SUFFIX}")):
            project_id = path.stem
            if not _PROJECT_ID.match(project_id):
                continue
            try:
                projects.append(self.get_project(project_id))
            except EngineError as e:
                log.warning("Skipping unparseable project %s: %s", path, e)
        return projects

    def get_project(self, project_id: str) -> Project:
        path = self._path_for(project_id)
        with self._lock_for(path):
            text = self._read(path, project_id)
        return self._parse(text, project_id, path)

    def create_project(self, title: str, project_id: Optional[str] = None) -> Project:
        project = create_project(title, project_id)
        path = self._path_for(project.id)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        with self._lock_for(path):
            if path.exists():
                raise InvalidFieldError(f"Project '{project.id}' already exists")
            path.write_text(serialize_project(project), encoding="utf-8")
        log.info("Created project '%s' at %s", project.id, path)
        project.path = str(path)
        return project

    def get_raw(self, project_id: str) -> str:
        path = self._path_for(project_id)
        with self._lock_for(path):
            return self._read(path, project_id)

    def save_raw(self, project_id: str, text: str) -> Project:
        """Replace a document's text. The text must parse, or nothing is written."""
        def apply(_current: str) -> Tuple[str, None]:
            self._parse(text, project_id, self._path_for(project_id))
            return text, None

        project, _ = self._mutate(project_id, "save_raw", apply)
        return project

    def delete_project(self, project_id: str) -> None:
        path = self._path_for(project_id)
        with self._lock_for(path):
            try:
                path.unlink()
            except FileNotFoundError:
                raise NotFoundError(f"Project '{project_id}' not found") from None
        log.info("Deleted project '%s'", project_id)

    # ------------------------------------------------------------------
    # Tasks (line-addressed)
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
        parent_line_number: Optional[int] = None,
    ) -> Task:
        """
        Add a task and return it as re-parsed from disk, so ``id`` and
        ``line_number`` match the written document.
        """
        content = validate_task_content(content)

        def apply(text: str) -> Tuple[str, int]:
            return file_mode.add_task_at(
                text,
                project_id,
                content,
                status=status,
                due_date=due_date,
                scheduled_date=scheduled_date,
                repeat_frequency=repeat_frequency,
                repeat_interval_days=repeat_interval_days,
                group_id=group_id,
                parent_line_number=parent_line_number,
            )

        project, line_number = self._mutate(project_id, "add_task", apply)
        return project.find_by_line(line_number)

    def update_task(self, project_id: str, line_number: int, **changes) -> Project:
        """
        Merge field changes into the task on ``line_number``. Marking a
        recurring task done rolls it over to its next occurrence.
        """
        if "content" in changes:
            changes["content"] = validate_task_content(changes["content"])

        def apply(text: str) -> Tuple[str, None]:
            return file_mode.update_task_at(
                text, project_id, line_number, roll_recurring=True, **changes
            ), None

        project, _ = self._mutate(project_id, "update_task", apply)
        return project

    def delete_task(self, project_id: str, line_number: int) -> Project:
        project, _ = self._mutate(
            project_id,
            "delete_task",
            lambda text: (file_mode.delete_task_at(text, project_id, line_number), None),
        )
        return project

    def move_to_parent(
        self,
        project_id: str,
        line_number: int,
        new_parent_line_number: Optional[int],
    ) -> Project:
        project, _ = self._mutate(
            project_id,
            "move_to_parent",
            lambda text: (
                file_mode.move_to_parent_at(text, project_id, line_number, new_parent_line_number),
                None,
            ),
        )
        return project

    def move_to_group(self, project_id: str, line_number: int, to_group_id: str) -> Project:
        project, _ = self._mutate(
            project_id,
            "move_to_group",
            lambda text: (
                file_mode.move_to_group_at(text, project_id, line_number, to_group_id),
                None,
            ),
        )
        return project

    def reorder(self, project_id: str, group_id: str, line_numbers: List[int]) -> Project:
        project, _ = self._mutate(
            project_id,
            "reorder",
            lambda text: (file_mode.reorder_at(text, project_id, group_id, line_numbers), None),
        )
        return project

    def handle_recurring(self, project_id: str, line_number: int) -> Task:
        """Complete a recurring task; returns the new occurrence."""
        project, new_line = self._mutate(
            project_id,
            "handle_recurring",
            lambda text: file_mode.handle_recurring_at(text, project_id, line_number),
        )
        return project.find_by_line(new_line)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def add_group(self, project_id: str, name: str) -> Group:
        group_ids: List[str] = []

        def apply(text: str) -> Tuple[str, None]:
            new_text, group_id = file_mode.add_group_at(text, project_id, name)
            group_ids.append(group_id)
            return new_text, None

        project, _ = self._mutate(project_id, "add_group", apply)
        return project.find_group(group_ids[0])
