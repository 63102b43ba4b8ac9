"""kl_market REST endpoints.

POST /markets                       — create (auth)
GET  /markets                       — list, optional ?status=OPEN|RESOLVED
GET  /markets/{id}                  — detail
GET  /markets/{id}/probabilities    — implied probabilities
GET  /markets/{id}/trades           — trade history
POST /markets/{id}/buy, /sell       — trade (auth)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from src.kl_common.enums import MarketStatus
from src.kl_common.response import ApiResponse, request_success
from src.kl_gateway.auth.dependencies import get_current_user
from src.kl_gateway.user.models import User
from src.kl_market.application.schemas import (
    CreateMarketRequest,
    MarketListResponse,
    MarketResponse,
    TradeListResponse,
    TradeRequest,
    TradeResponse,
)
from src.node import LedgerNode, get_node

router = APIRouter(prefix="/markets", tags=["markets"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    market = await node.markets.create_market(
        body.market_id, body.question, body.kit_id, body.deadline, current_user.email
    )
    return request_success(request, MarketResponse.from_domain(market).model_dump(), "Market created")


@router.get("")
async def list_markets(
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
    status_filter: Annotated[MarketStatus | None, Query(alias="status")] = None,
) -> ApiResponse:
    markets = node.markets.list_markets(status_filter)
    data = MarketListResponse(items=[MarketResponse.from_domain(m) for m in markets])
    return request_success(request, data.model_dump())


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    market = node.markets.get_market(market_id)
    return request_success(request, MarketResponse.from_domain(market).model_dump())


@router.get("/{market_id}/probabilities")
async def get_probabilities(
    market_id: str,
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    return request_success(request, node.markets.probabilities(market_id))


@router.get("/{market_id}/trades")
async def list_trades(
    market_id: str,
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    trades = node.markets.trades(market_id)
    data = TradeListResponse(
        market_id=market_id, items=[TradeResponse.from_domain(t) for t in trades]
    )
    return request_success(request, data.model_dump())


@router.post("/{market_id}/buy")
async def buy_shares(
    market_id: str,
    body: TradeRequest,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    trade = await node.markets.buy(market_id, current_user.id, body.outcome, body.amount)
    return request_success(request, TradeResponse.from_domain(trade).model_dump(), "Shares purchased")


@router.post("/{market_id}/sell")
async def sell_shares(
    market_id: str,
    body: TradeRequest,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    trade = await node.markets.sell(market_id, current_user.id, body.outcome, body.amount)
    return request_success(request, TradeResponse.from_domain(trade).model_dump(), "Shares sold")
