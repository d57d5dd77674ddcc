"""REST API routes for project and task operations."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from mdtasks.engine.errors import EngineError, NotFoundError
from mdtasks.tools.task_tools import (
    handle_group_add,
    handle_project_create,
    handle_project_get,
    handle_project_list,
    handle_project_raw,
    handle_project_save_raw,
    handle_task_add,
    handle_task_complete_recurring,
    handle_task_delete,
    handle_task_list,
    handle_task_move,
    handle_task_reorder,
    handle_task_update,
)


class ProjectCreateBody(BaseModel):
    title: str
    project_id: Optional[str] = None


class RawBody(BaseModel):
    content: str


class TaskAddBody(BaseModel):
    content: str
    status: str = "todo"
    due: Optional[str] = None
    scheduled: Optional[str] = None
    repeat: Optional[str] = None
    repeat_interval_days: Optional[int] = None
    group_id: Optional[str] = None
    parent_line: Optional[int] = None


class TaskUpdateBody(BaseModel):
    content: Optional[str] = None
    status: Optional[str] = None
    due: Optional[str] = None
    scheduled: Optional[str] = None
    repeat: Optional[str] = None
    repeat_interval_days: Optional[int] = None


class TaskMoveBody(BaseModel):
    parent_line: Optional[int] = None
    to_group_id: Optional[str] = None


class GroupOrderBody(BaseModel):
    line_numbers: List[int]


class GroupAddBody(BaseModel):
    name: str


def _call(handler, *args, **kwargs):
    """Run a handler, mapping NotFoundError to 404 and other engine errors to 400."""
    try:
        return handler(*args, **kwargs)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EngineError as e:
        raise HTTPException(status_code=400, detail=str(e))


def register_task_routes(app_router: APIRouter, store) -> None:
    """Attach project and task REST routes that use the shared store."""

    @app_router.get("/projects")
    def list_projects():
        return _call(handle_project_list, store)

    @app_router.post("/projects", status_code=201)
    def create_project(body: ProjectCreateBody):
        return _call(handle_project_create, store, **body.model_dump())

    @app_router.get("/projects/{project_id}")
    def get_project(project_id: str):
        return _call(handle_project_get, store, project_id=project_id)

    @app_router.get("/projects/{project_id}/raw")
    def get_raw(project_id: str):
        return _call(handle_project_raw, store, project_id=project_id)

    @app_router.put("/projects/{project_id}/raw")
    def save_raw(project_id: str, body: RawBody):
        return _call(handle_project_save_raw, store, project_id=project_id, content=body.content)

    @app_router.get("/projects/{project_id}/tasks")
    def list_tasks(project_id: str, status: Optional[str] = Query(None)):
        return _call(handle_task_list, store, project_id=project_id, status=status)

    @app_router.post("/projects/{project_id}/tasks", status_code=201)
    def add_task(project_id: str, body: TaskAddBody):
        return _call(handle_task_add, store, project_id=project_id, **body.model_dump())

    @app_router.patch("/projects/{project_id}/tasks/{line_number}")
    def update_task(project_id: str, line_number: int, body: TaskUpdateBody):
        return _call(
            handle_task_update,
            store,
            project_id=project_id,
            line_number=line_number,
            **body.model_dump(),
        )

    @app_router.delete("/projects/{project_id}/tasks/{line_number}")
    def delete_task(project_id: str, line_number: int):
        return _call(handle_task_delete, store, project_id=project_id, line_number=line_number)

    @app_router.post("/projects/{project_id}/tasks/{line_number}/move")
    def move_task(project_id: str, line_number: int, body: TaskMoveBody):
        return _call(
            handle_task_move,
            store,
            project_id=project_id,
            line_number=line_number,
            **body.model_dump(),
        )

    @app_router.post("/projects/{project_id}/tasks/{line_number}/recur")
    def complete_recurring(project_id: str, line_number: int):
        return _call(
            handle_task_complete_recurring,
            store,
            project_id=project_id,
            line_number=line_number,
        )

    @app_router.put("/projects/{project_id}/groups/{group_id}/order")
    def reorder_group(project_id: str, group_id: str, body: GroupOrderBody):
        return _call(
            handle_task_reorder,
            store,
            project_id=project_id,
            group_id=group_id,
            line_numbers=body.line_numbers,
        )

    @app_router.post("/projects/{project_id}/groups", status_code=201)
    def add_group(project_id: str, body: GroupAddBody):
        return _call(handle_group_add, store, project_id=project_id, name=body.name)
