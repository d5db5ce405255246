"""
api/routes/tasks.py -- Task CRUD endpoints.

Routes (all require Authorization: Bearer <token>):
  POST   /api/tasks        -- create; status defaults to "Todo"
  GET    /api/tasks        -- newest first, ?limit= (default 50) &offset=
  GET    /api/tasks/{id}   -- 404 if absent or not the caller's
  PUT    /api/tasks/{id}   -- partial update; 404 if absent or not the caller's
  DELETE /api/tasks/{id}   -- always 200, whether or not anything was deleted

Auth policy: every route depends on get_current_user_id, so the handler only
runs for a valid token, and the user id it receives is the only owner id
ever passed to the store. A task id belonging to someone else behaves
exactly like a task id that does not exist.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.models import (
    MessageResponse,
    TaskCreate,
    TaskListResponse,
    TaskOut,
    TaskResponse,
    TaskUpdate,
    parse_timestamp,
)
from auth.dependencies import get_current_user_id
from tasks.models import DEFAULT_STATUS, Task
from tasks.store import TaskRepository

router = APIRouter(prefix="/tasks")

DEFAULT_LIST_LIMIT = 50


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": "Task not found."},
    )


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    user_id: str = Depends(get_current_user_id),
) -> TaskResponse:
    task_store: TaskRepository = request.app.state.task_store
    task = Task(
        user_id=user_id,
        title=body.title,
        description=body.description,
        status=body.status if body.status is not None else DEFAULT_STATUS,
        due_date=parse_timestamp(body.due_date) if body.due_date else None,
    )
    created = task_store.create_task(task)
    return TaskResponse(response_code=201, data=TaskOut.from_task(created))


@router.get("", response_model=TaskListResponse)
def list_tasks(
    request: Request,
    limit: int = Query(default=DEFAULT_LIST_LIMIT),
    offset: int = Query(default=0),
    user_id: str = Depends(get_current_user_id),
) -> TaskListResponse:
    """List the caller's tasks, newest first. The store clamps limit and offset."""
    task_store: TaskRepository = request.app.state.task_store
    items = task_store.list_tasks_by_owner(user_id, limit=limit, offset=offset)
    return TaskListResponse(data=[TaskOut.from_task(t) for t in items])


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    request: Request,
    task_id: str,
    user_id: str = Depends(get_current_user_id),
) -> TaskResponse:
    task_store: TaskRepository = request.app.state.task_store
    task = task_store.get_task(user_id, task_id)
    if task is None:
        raise _not_found()
    return TaskResponse(data=TaskOut.from_task(task))


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: str,
    body: TaskUpdate,
    user_id: str = Depends(get_current_user_id),
) -> TaskResponse:
    """Apply the fields present in the body; absent or null fields are left alone.

    due_date "" clears the due date; any other value replaces it.
    """
    task_store: TaskRepository = request.app.state.task_store
    task = task_store.get_task(user_id, task_id)
    if task is None:
        raise _not_found()

    if body.title is not None:
        task.title = body.title
    if body.description is not None:
        task.description = body.description
    if body.status is not None:
        task.status = body.status
    if body.due_date is not None:
        task.due_date = parse_timestamp(body.due_date) if body.due_date else None

    updated = task_store.update_task(task)
    if updated is None:
        # Deleted between the read and the write.
        raise _not_found()
    return TaskResponse(data=TaskOut.from_task(updated))


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    request: Request,
    task_id: str,
    user_id: str = Depends(get_current_user_id),
) -> MessageResponse:
    task_store: TaskRepository = request.app.state.task_store
    task_store.delete_task(user_id, task_id)
    return MessageResponse(message="deleted")
