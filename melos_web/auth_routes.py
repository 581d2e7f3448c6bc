"""
FastAPI routes for registration and login.

Prefix: /api
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from melos.app import MelosApp
from .auth_middleware import get_melos
from .schemas import ErrorResponse, LoginRequest, LoginResponse, RegisterRequest, RegisterResponse

router = APIRouter(prefix="/api", tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def register(body: RegisterRequest, melos: MelosApp = Depends(get_melos)) -> RegisterResponse:
    """
    Register a new user.

    Request (JSON):
        username, email, password

    Response:
        { "message": "...", "userId": "..." }
    """
    result = melos.auth.handle_register(body.username, body.email, body.password)
    return RegisterResponse(message="User registered successfully", user_id=result["user_id"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def login(body: LoginRequest, melos: MelosApp = Depends(get_melos)) -> LoginResponse:
    """
    Log in with username or email.

    Request (JSON):
        usernameOrEmail, password

    Response:
        { "message": "...", "token": "...", "userId": "...", "username": "..." }
    """
    result = melos.auth.handle_login(body.username_or_email, body.password)
    return LoginResponse(
        message="Login successful",
        token=result["token"],
        user_id=result["user_id"],
        username=result["username"],
    )
