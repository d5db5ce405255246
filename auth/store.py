"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper.
UserRepository is the capability set the auth service depends on; UserStore
is the relational implementation and _row_to_user is the mapper. Tests can
pass any object with the same two methods.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Email uniqueness is case-insensitive. The address is stored as the user
  typed it and a UNIQUE index on lower(email) enforces the rule in the
  database, so two concurrent registrations cannot both win.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Protocol

from sqlalchemy import Column, Index, String, Table, Text, func
from sqlalchemy.engine import Engine

from auth.models import User, UserRole
from core.database import from_iso, metadata, now_utc, to_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),  # UUID4, generated on insert
    Column("name", Text, nullable=False),
    Column("email", String(320), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default=UserRole.EMPLOYEE.value),
    Column("department", Text),
    Column("created_at", String(32), nullable=False),
)

Index("users_email_lower_key", func.lower(users.c.email), unique=True)
Index("users_created_at_idx", users.c.created_at)
Index("users_department_idx", users.c.department)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserRepository(Protocol):
    def create_user(self, user: User) -> User: ...

    def find_user_by_email(self, email: str) -> User | None: ...


class UserStore:
    """Relational UserRepository.

    Usage:
        store = UserStore(engine)
        created = store.create_user(User(name="Ann", email="ann@x.com", password_hash=hash_password("secret1", 10)))
        user = store.find_user_by_email("ANN@x.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and created_at filled in.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken
        (compared case-insensitively). AuthService maps that to a duplicate
        error for the concurrent-registration case.
        """
        created = replace(user, id=str(uuid.uuid4()), created_at=now_utc())
        with self.engine.connect() as conn:
            conn.execute(
                users.insert().values(
                    id=created.id,
                    name=created.name,
                    email=created.email,
                    password_hash=created.password_hash,
                    role=UserRole(created.role).value,
                    department=created.department,
                    created_at=to_iso(created.created_at),
                )
            )
            conn.commit()
        return created

    def find_user_by_email(self, email: str) -> User | None:
        """Look up a user by email, ignoring case. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(func.lower(users.c.email) == email.lower()).limit(1)).fetchone()
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        role=UserRole(row.role),
        department=row.department,
        created_at=from_iso(row.created_at),
    )
