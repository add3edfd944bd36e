"""Authentication endpoints."""

from fastapi import APIRouter, status

from uniport.core import auth
from uniport.web.deps import CurrentUser, TokenDep
from uniport.web.schemas import (
    ApiResponse,
    AuthData,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    envelope,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
async def register(body: RegisterRequest) -> ApiResponse:
    """Self-register a student account."""
    user, token = auth.register_student(
        matric_no=body.matric_no,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        department=body.department,
        level=body.level,
    )
    return envelope(
        {"user": user.to_public_dict(), "token": token}, "Registration successful"
    )


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(body: LoginRequest) -> ApiResponse:
    """Log in with matric number (or email) and password."""
    user, token = auth.login(body.matric_no, body.password)
    return envelope({"user": user.to_public_dict(), "token": token}, "Login successful")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(user: CurrentUser) -> ApiResponse:
    """Profile of the logged-in user."""
    return envelope(user.to_public_dict())


@router.post("/logout", response_model=ApiResponse[None])
async def logout(user: CurrentUser, token: TokenDep) -> ApiResponse:
    """Revoke the current bearer token."""
    auth.revoke_token(token)
    return envelope(message="Logged out")
