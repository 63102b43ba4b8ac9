"""kl_positions REST endpoints: GET /positions/me, GET /leaderboard."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.kl_common.response import ApiResponse, request_success
from src.kl_gateway.auth.dependencies import get_current_user
from src.kl_gateway.user.models import User
from src.kl_positions.application.schemas import LeaderboardResponse, PositionsResponse
from src.node import LedgerNode, get_node

router = APIRouter(tags=["positions"])


@router.get("/positions/me")
async def my_positions(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    account = node.positions.positions(current_user.id)
    return request_success(request, PositionsResponse.from_domain(account).model_dump())


@router.get("/leaderboard")
async def leaderboard(
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    entries = node.positions.leaderboard()
    return request_success(request, LeaderboardResponse.from_entries(entries).model_dump())
