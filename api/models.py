"""
API request and response models for WorkMate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route
handlers map between the two.

Every response body carries response_code (the HTTP status repeated in the
payload) so clients that only look at the JSON still see the outcome.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.models import User
from tasks.models import Task


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 / ISO 8601 timestamp into UTC. Naive values are taken as UTC.

    Raises ValueError if the string is not a timestamp or falls outside the
    representable UTC range.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        # e.g. 9999-12-31T23:59:59-05:00 has no UTC representation.
        raise ValueError(f"timestamp out of range: {value!r}") from exc


def _check_due_date(value: Optional[str]) -> Optional[str]:
    # "" is meaningful (clears the due date on update), so only non-empty
    # strings must parse.
    if value:
        try:
            parse_timestamp(value)
        except ValueError as exc:
            raise ValueError("due_date must be an RFC 3339 timestamp, e.g. 2026-01-31T17:00:00Z") from exc
    return value


_DueDate = Annotated[Optional[str], AfterValidator(_check_due_date)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/register."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    # Not stripped: whitespace is a legitimate part of a password.
    password: str = Field(min_length=6, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/login."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=255)


class TaskCreate(BaseModel):
    """Request body for POST /api/tasks. status defaults to "Todo" when absent or null."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: _DueDate = None


class TaskUpdate(BaseModel):
    """Request body for PUT /api/tasks/{id}.

    Partial update: absent or null fields keep their stored value.
    due_date "" clears the due date.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: _DueDate = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Response for POST /api/register. Never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    response_code: int = 201
    id: str
    name: str
    email: str
    role: str
    department: Optional[str]
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            department=user.department,
            created_at=user.created_at,
        )


class TokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_code: int = 200
    token: str


class TaskOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    title: str
    description: Optional[str]
    status: str
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        """Factory Method: the domain -> wire mapping lives next to the wire model."""
        return cls(
            id=task.id,
            user_id=task.user_id,
            title=task.title,
            description=task.description,
            status=task.status,
            due_date=task.due_date,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_code: int = 200
    data: TaskOut


class TaskListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_code: int = 200
    data: list[TaskOut]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    response_code: int = 200
    message: str


class HealthResponse(BaseModel):
    """Response for GET /healthz."""

    model_config = ConfigDict(frozen=True)

    response_code: int = 200
    status: str = "ok"


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    response_code: int
    error: ErrorDetail
