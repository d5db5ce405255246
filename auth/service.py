"""
auth/service.py -- Registration and login.

AuthService owns the credential flow; the HTTP layer only validates input
shape and maps AuthError subclasses to status codes. It is built once at
startup from the injected Settings (signing secret, bcrypt cost) and a
UserRepository.

Enumeration resistance:
  login() raises the same InvalidCredentialsError for an unknown email and
  for a wrong password, and runs bcrypt in both cases (against a dummy hash
  of equal cost when the email is unknown) so timing does not tell them
  apart either.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateEmailError, InvalidCredentialsError
from auth.models import User, UserRole
from auth.store import UserRepository
from auth.tokens import create_access_token, dummy_hash, hash_password, validate_token, verify_password
from core.config import Settings

logger = logging.getLogger("workmate.auth")


@dataclass(frozen=True)
class RegisterInput:
    name: str
    email: str
    password: str
    department: str | None = None


@dataclass(frozen=True)
class LoginInput:
    email: str
    password: str


class AuthService:
    def __init__(self, users: UserRepository, settings: Settings) -> None:
        self._users = users
        self._secret = settings.jwt_secret
        self._rounds = settings.bcrypt_rounds

    def register(self, data: RegisterInput) -> User:
        """Create an Employee account. Raises DuplicateEmailError if the email is taken."""
        if self._users.find_user_by_email(data.email) is not None:
            raise DuplicateEmailError()

        user = User(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password, self._rounds),
            role=UserRole.EMPLOYEE,
            department=data.department,
        )
        try:
            created = self._users.create_user(user)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same address.
            raise DuplicateEmailError() from exc
        logger.info("Registered user %s", created.id)
        return created

    def login(self, data: LoginInput) -> str:
        """Check credentials and return a signed access token."""
        user = self._users.find_user_by_email(data.email)
        if user is None:
            verify_password(data.password, dummy_hash(self._rounds))
            raise InvalidCredentialsError()
        if not verify_password(data.password, user.password_hash):
            raise InvalidCredentialsError()
        return create_access_token(user.id, user.email, UserRole(user.role).value, self._secret)

    def validate(self, token: str) -> str:
        """Return the user id the token was issued to. Raises UnauthorizedError."""
        return validate_token(token, self._secret)
