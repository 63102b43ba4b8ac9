"""kl_chain REST endpoints.

GET /ledger                   — full local chain
GET /ledger/{kit_id}          — custody history of one kit
GET /audit                    — full-chain integrity report (auth)
GET /tamper-check/{kit_id}    — per-kit hash check (auth)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.kl_chain.application.schemas import (
    AuditResponse,
    ChainResponse,
    HistoryResponse,
    TamperCheckResponse,
    blocks_to_wire,
)
from src.kl_common.errors import SubjectNotFoundError
from src.kl_common.response import ApiResponse, request_success
from src.kl_gateway.auth.dependencies import get_current_user
from src.kl_gateway.user.models import User
from src.node import LedgerNode, get_node

router = APIRouter(tags=["ledger"])


@router.get("/ledger")
async def get_ledger(
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    blocks = await node.chain.get_full_chain()
    return request_success(request, ChainResponse.from_blocks(blocks).model_dump())


@router.get("/ledger/{kit_id}")
async def get_kit_history(
    kit_id: str,
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    history = await node.chain.get_history(kit_id)
    if not history:
        raise SubjectNotFoundError(kit_id)
    data = HistoryResponse(
        kit_id=kit_id, record_count=len(history), history=blocks_to_wire(history)
    )
    return request_success(request, data.model_dump())


@router.get("/audit")
async def audit_ledger(
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    report = await node.chain.audit()
    return request_success(request, AuditResponse.from_report(report).model_dump())


@router.get("/tamper-check/{kit_id}")
async def tamper_check(
    kit_id: str,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    checks = await node.chain.tamper_check(kit_id)
    return request_success(request, TamperCheckResponse.from_checks(kit_id, checks).model_dump())
