"""
tasks/models.py -- Domain dataclass for to-do items.

Pure data container. Owner scoping and timestamp handling live in
tasks/store.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DEFAULT_STATUS = "Todo"


@dataclass
class Task:
    """A to-do item owned by exactly one user.

    status is free-form text; nothing validates it against a fixed set.
    id, created_at and updated_at are None until the store writes the record.
    """

    user_id: str
    title: str
    description: str | None = None
    status: str = DEFAULT_STATUS
    due_date: datetime | None = None
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
