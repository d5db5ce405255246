"""
api/routes/auth.py -- Registration and login endpoints.

Routes:
  POST /api/register  -- create an Employee account; 201 with the user (no hash)
  POST /api/login     -- exchange email + password for a bearer token

Both are public. The credential logic lives in auth.service.AuthService;
this module maps its errors to HTTP:
  DuplicateEmailError      -> 400 duplicate_email
  InvalidCredentialsError  -> 401 bad_credentials (same body for unknown
                              email and wrong password)

Login responses carry Cache-Control: no-store so proxies and browsers never
keep a copy of the token.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, LoginRequest, RegisterRequest, TokenResponse, UserResponse
from auth.errors import DuplicateEmailError, InvalidCredentialsError
from auth.service import AuthService, LoginInput, RegisterInput

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Register a new user. Role is always Employee."""
    auth_service: AuthService = request.app.state.auth_service
    try:
        user = auth_service.register(
            RegisterInput(
                name=body.name,
                email=body.email,
                password=body.password,
                department=body.department,
            )
        )
    except DuplicateEmailError as exc:
        raise HTTPException(
            status_code=400,
            detail={"code": exc.code, "message": exc.message},
        ) from exc
    return UserResponse.from_user(user)


@router.post("/login", response_model=TokenResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a 24h bearer token."""
    auth_service: AuthService = request.app.state.auth_service
    try:
        token = auth_service.login(LoginInput(email=body.email, password=body.password))
    except InvalidCredentialsError as exc:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                response_code=401,
                error=ErrorDetail(code=exc.code, message=exc.message),
            ).model_dump(exclude_none=True),
        )
    else:
        resp = JSONResponse(status_code=200, content=TokenResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp
