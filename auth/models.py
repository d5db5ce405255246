"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the auth
service do the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "Admin"
    EMPLOYEE = "Employee"


@dataclass
class User:
    """A registered account.

    password_hash is a bcrypt hash (cost and salt embedded). It never leaves
    the server: API response models do not carry it.

    id and created_at are None until the store has written the record.
    """

    name: str
    email: str
    password_hash: str
    role: UserRole = UserRole.EMPLOYEE
    department: str | None = None
    id: str | None = None
    created_at: datetime | None = None
