"""
auth/errors.py -- Exceptions raised by the auth flow.

The route layer maps each to an HTTP status (see api/routes/auth.py and
auth/dependencies.py). Messages here are the client-facing ones, so they
must stay generic: InvalidCredentialsError is raised for both an unknown
email and a wrong password, and UnauthorizedError for every token failure.
"""


class AuthError(Exception):
    """Base class for auth flow failures."""

    code = "auth_error"
    message = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class DuplicateEmailError(AuthError):
    code = "duplicate_email"
    message = "Email is already registered."


class InvalidCredentialsError(AuthError):
    code = "bad_credentials"
    message = "Invalid email or password."


class UnauthorizedError(AuthError):
    code = "unauthorized"
    message = "Authentication required."
