"""
auth/dependencies.py -- FastAPI Depends() helper for authentication.

Protected routes declare `user_id: str = Depends(get_current_user_id)`.
FastAPI resolves the dependency before the handler body runs, so a request
without a valid bearer token is answered with 401 and the handler never
executes.

Only the Authorization: Bearer <token> header is accepted. A missing
header, another scheme, and every token failure produce the same 401 body.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.errors import UnauthorizedError
from auth.service import AuthService

# auto_error=False: we raise our own 401 so the body matches every other
# auth failure. The scheme object still documents bearer auth in /docs.
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": UnauthorizedError.code, "message": UnauthorizedError.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Require a valid bearer token and return the caller's user id."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized()

    auth_service: AuthService = request.app.state.auth_service
    try:
        return auth_service.validate(credentials.credentials)
    except UnauthorizedError:
        raise _unauthorized() from None
