"""
tasks/store.py -- SQLAlchemy Core persistence layer for tasks.

Pattern: Repository + Data Mapper. TaskRepository is the capability set the
route layer depends on, TaskStore the relational implementation.

Every statement is owner-scoped: the WHERE clause carries both the task id
and the owner's user id, so a caller who knows another user's task id gets
the same answer as for an id that does not exist.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore(engine)
    task = store.create_task(Task(user_id=uid, title="Write report"))
    store.list_tasks_by_owner(uid, limit=50)
    store.delete_task(uid, task.id)
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Optional, Protocol

from sqlalchemy import Column, ForeignKey, Index, String, Table, Text
from sqlalchemy.engine import Engine

from core.database import from_iso, metadata, now_utc, to_iso
from tasks.models import DEFAULT_STATUS, Task

logger = logging.getLogger("workmate.tasks")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

tasks = Table(
    "tasks",
    metadata,
    Column("id", String(36), primary_key=True),  # UUID4, generated on insert
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("status", Text, nullable=False, server_default=DEFAULT_STATUS),
    Column("due_date", String(32)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

Index("tasks_user_id_idx", tasks.c.user_id)
Index("tasks_status_idx", tasks.c.status)
Index("tasks_due_date_idx", tasks.c.due_date)


def clamp_page(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    """Normalize paging input: limit in (0, MAX_PAGE_SIZE], offset >= 0.

    A limit that is missing or out of range falls back to DEFAULT_PAGE_SIZE
    rather than being capped at the maximum.
    """
    if limit is None or limit <= 0 or limit > MAX_PAGE_SIZE:
        limit = DEFAULT_PAGE_SIZE
    if offset is None or offset < 0:
        offset = 0
    return limit, offset


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskRepository(Protocol):
    def create_task(self, task: Task) -> Task: ...

    def get_task(self, owner_id: str, task_id: str) -> Task | None: ...

    def list_tasks_by_owner(self, owner_id: str, limit: Optional[int] = None, offset: int = 0) -> list[Task]: ...

    def update_task(self, task: Task) -> Task | None: ...

    def delete_task(self, owner_id: str, task_id: str) -> None: ...


class TaskStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_task(self, task: Task) -> Task:
        """Insert a task and return it with id and timestamps filled in."""
        now = now_utc()
        created = replace(task, id=str(uuid.uuid4()), created_at=now, updated_at=now)
        with self.engine.connect() as conn:
            conn.execute(
                tasks.insert().values(
                    id=created.id,
                    user_id=created.user_id,
                    title=created.title,
                    description=created.description,
                    status=created.status,
                    due_date=to_iso(created.due_date),
                    created_at=to_iso(now),
                    updated_at=to_iso(now),
                )
            )
            conn.commit()
        return created

    def get_task(self, owner_id: str, task_id: str) -> Task | None:
        """Return the task if it exists and belongs to owner_id, else None."""
        with self.engine.connect() as conn:
            row = conn.execute(
                tasks.select().where((tasks.c.id == task_id) & (tasks.c.user_id == owner_id))
            ).fetchone()
        return _row_to_task(row) if row is not None else None

    def list_tasks_by_owner(self, owner_id: str, limit: Optional[int] = None, offset: int = 0) -> list[Task]:
        """Return one page of the owner's tasks, newest first."""
        limit, offset = clamp_page(limit, offset)
        with self.engine.connect() as conn:
            rows = conn.execute(
                tasks.select()
                .where(tasks.c.user_id == owner_id)
                .order_by(tasks.c.created_at.desc())
                .limit(limit)
                .offset(offset)
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def update_task(self, task: Task) -> Task | None:
        """Write title, description, status and due_date back; refresh updated_at.

        Matches on (task.id, task.user_id). Returns the updated task, or None
        if no row matched (deleted meanwhile, or not the caller's).
        """
        now = now_utc()
        with self.engine.connect() as conn:
            result = conn.execute(
                tasks.update()
                .where((tasks.c.id == task.id) & (tasks.c.user_id == task.user_id))
                .values(
                    title=task.title,
                    description=task.description,
                    status=task.status,
                    due_date=to_iso(task.due_date),
                    updated_at=to_iso(now),
                )
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return replace(task, updated_at=now)

    def delete_task(self, owner_id: str, task_id: str) -> None:
        """Delete the task if it belongs to owner_id. Deleting nothing is not an error."""
        with self.engine.connect() as conn:
            result = conn.execute(tasks.delete().where((tasks.c.id == task_id) & (tasks.c.user_id == owner_id)))
            conn.commit()
        if result.rowcount == 0:
            logger.debug("Delete matched no task (id=%s)", task_id)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        status=row.status,
        due_date=from_iso(row.due_date),
        created_at=from_iso(row.created_at),
        updated_at=from_iso(row.updated_at),
    )
