"""Admin REST API. Every route requires the admin role."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.kl_common.enums import UserRole
from src.kl_common.response import ApiResponse, request_success
from src.kl_gateway.auth.dependencies import require_roles
from src.kl_gateway.user.models import User
from src.kl_gateway.user.schemas import (
    ApproveUserRequest,
    SetRoleRequest,
    SetStatusRequest,
    UserInfo,
    UserListResponse,
)
from src.kl_market.application.schemas import ResolveMarketRequest
from src.node import LedgerNode, get_node

router = APIRouter(prefix="/admin", tags=["admin"])

AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
Node = Annotated[LedgerNode, Depends(get_node)]


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: str, body: ResolveMarketRequest, request: Request, admin: AdminUser, node: Node
) -> ApiResponse:
    result = await node.admin.resolve_market(market_id, body.outcome, admin.email)
    return request_success(request, result, "Market resolved")


@router.post("/kits/{kit_id}/rollback")
async def rollback_kit(kit_id: str, request: Request, admin: AdminUser, node: Node) -> ApiResponse:
    result = await node.admin.rollback_kit(kit_id, admin.email)
    return request_success(request, result, "Latest record removed")


@router.get("/users/pending")
async def pending_users(request: Request, admin: AdminUser, node: Node) -> ApiResponse:
    users = node.admin.pending_users()
    data = UserListResponse(items=[UserInfo.from_domain(u) for u in users])
    return request_success(request, data.model_dump())


@router.post("/users/{user_id}/approve")
async def approve_user(
    user_id: str, body: ApproveUserRequest, request: Request, admin: AdminUser, node: Node
) -> ApiResponse:
    user = node.admin.approve_user(user_id, body.role, admin.email)
    return request_success(request, UserInfo.from_domain(user).model_dump(), "User approved")


@router.post("/users/{user_id}/status")
async def set_user_status(
    user_id: str, body: SetStatusRequest, request: Request, admin: AdminUser, node: Node
) -> ApiResponse:
    user = node.admin.set_user_status(user_id, body.status, admin.email)
    return request_success(request, UserInfo.from_domain(user).model_dump(), "Status updated")


@router.post("/users/{user_id}/role")
async def set_user_role(
    user_id: str, body: SetRoleRequest, request: Request, admin: AdminUser, node: Node
) -> ApiResponse:
    user = node.admin.set_user_role(user_id, body.role, admin.email)
    return request_success(request, UserInfo.from_domain(user).model_dump(), "Role updated")


@router.get("/logs")
async def recent_logs(
    request: Request,
    admin: AdminUser,
    node: Node,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> ApiResponse:
    return request_success(request, {"items": node.admin.recent_events(limit)})
