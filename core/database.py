"""
core/database.py -- Engine factory and idempotent schema setup.

Uses SQLAlchemy Core (not ORM). Table definitions live next to the
repository that owns them (auth/store.py, tasks/store.py) and register on the
shared `metadata` below, so a single create_all() builds the whole schema,
foreign keys included.

There is no migration versioning: apply_schema() is safe to call on every
startup and only creates tables and indexes that are missing.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import MetaData, create_engine, event, text
from sqlalchemy.engine import Engine

metadata = MetaData()


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL and foreign key enforcement on every new SQLite connection.

    SQLite PRAGMAs are per-connection and are not inherited from the pool.
    foreign_keys is OFF by default in SQLite, which would silently disable
    the tasks -> users ON DELETE CASCADE rule.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Create a pooled engine for db_url.

    pool_pre_ping discards connections the server closed while idle, so a
    restarted database does not surface as a failed request.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=True)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def apply_schema(engine: Engine) -> None:
    """Create every registered table and index that does not exist yet.

    Callers must import the modules defining the tables first (auth.store and
    tasks.store); api.main does this at import time.
    """
    metadata.create_all(engine)


def ping(engine: Engine) -> None:
    """Raise if the database is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """Serialize a timestamp for storage. Naive datetimes are taken as UTC.

    Fixed microsecond precision keeps every stored value the same width, so
    ORDER BY on the text column is chronological.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)
