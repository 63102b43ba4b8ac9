"""kl_gossip REST endpoints (also the node-to-node wire surface).

POST /nodes/register  — register a peer
GET  /nodes           — list peers
GET  /sync            — full chain for peers
POST /blocks/receive  — accept a block pushed by a peer
POST /nodes/heal      — re-sync from registered peers (admin)
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from src.kl_chain.application.schemas import blocks_to_wire
from src.kl_common.enums import UserRole
from src.kl_common.errors import BlockRejectedError
from src.kl_common.response import ApiResponse, request_success
from src.kl_gateway.auth.dependencies import require_roles
from src.kl_gateway.user.models import User
from src.kl_gossip.application.schemas import (
    HealResponse,
    PeerListResponse,
    ReceiveResponse,
    RegisterPeerRequest,
    RegisterPeerResponse,
    SyncResponse,
)
from src.node import LedgerNode, get_node

router = APIRouter(tags=["nodes"])

# ReceiveResult.reason -> reason reported in the 409 error
_REJECTION_REASONS = {
    "malformed": "unverified",
    "invalid_hash": "tampered",
    "conflict": "conflict",
    "stale": "stale",
}


@router.post("/nodes/register")
async def register_peer(
    body: RegisterPeerRequest,
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    added = node.gossip.register_peer(body.address)
    data = RegisterPeerResponse(
        address=body.address.rstrip("/"), added=added, peers=node.gossip.peers()
    )
    return request_success(request, data.model_dump(), "Peer registered" if added else "Peer already known")


@router.get("/nodes")
async def list_peers(
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    return request_success(request, PeerListResponse(peers=node.gossip.peers()).model_dump())


@router.get("/sync")
async def serve_chain(
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    blocks = await node.chain.get_full_chain()
    data = SyncResponse(length=len(blocks), chain=blocks_to_wire(blocks))
    return request_success(request, data.model_dump())


@router.post("/blocks/receive")
async def receive_block(
    request: Request,
    node: Annotated[LedgerNode, Depends(get_node)],
    body: Annotated[Any, Body()] = None,
) -> ApiResponse:
    # Body is taken raw: structural problems are a gossip outcome, not a 422.
    result = await node.gossip.receive(body)
    if not result.accepted:
        raise BlockRejectedError(
            result.index if result.index is not None else "?",
            _REJECTION_REASONS.get(result.reason, result.reason),
        )
    data = ReceiveResponse(
        index=result.index, accepted=True, status=result.status, reason=result.reason
    )
    return request_success(request, data.model_dump(), "Block accepted")


@router.post("/nodes/heal")
async def heal(
    request: Request,
    current_user: Annotated[User, Depends(require_roles(UserRole.ADMIN))],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> ApiResponse:
    peer = await node.gossip.heal()
    node.audit_log.record(
        "CHAIN_HEAL", current_user.email, f"healed_from={peer or 'none'}"
    )
    count = len(await node.chain.get_full_chain())
    return request_success(request, HealResponse(healed_from=peer, block_count=count).model_dump())
