"""Auth API router: register, login, refresh, profile."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from config.settings import settings
from src.kl_common.response import ApiResponse, request_success
from src.kl_gateway.auth.dependencies import get_current_user
from src.kl_gateway.user.models import User
from src.kl_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserInfo,
)
from src.node import LedgerNode, get_node

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="User registration")
async def register(
    request: Request,
    body: RegisterRequest,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    user = node.users.register(body.email, body.password, body.role)
    node.audit_log.record("USER_REGISTERED", user.email, f"role={user.role.value}")
    return request_success(
        request,
        UserInfo.from_domain(user).model_dump(),
        "Registration received; awaiting admin approval",
    )


@router.post("/login", summary="User login")
async def login(
    request: Request,
    body: LoginRequest,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    user, access_token, refresh_token = node.users.login(body.email, body.password)
    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo.from_domain(user),
    )
    node.audit_log.record("LOGIN", user.email)
    return request_success(request, data.model_dump(), "Login successful")


@router.post("/refresh", summary="Refresh access token")
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    data = RefreshResponse(
        access_token=node.users.refresh(body.refresh_token),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return request_success(request, data.model_dump(), "Token refreshed")


@router.get("/profile", summary="Current user")
async def profile(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
) -> ApiResponse:
    return request_success(request, UserInfo.from_domain(current_user).model_dump())
