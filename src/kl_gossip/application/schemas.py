"""Pydantic schemas for kl_gossip."""

from typing import Any

from pydantic import BaseModel, Field


class RegisterPeerRequest(BaseModel):
    address: str = Field(..., min_length=1, max_length=512)


class RegisterPeerResponse(BaseModel):
    address: str
    added: bool
    peers: list[str]


class PeerListResponse(BaseModel):
    peers: list[str]


class SyncResponse(BaseModel):
    """Full chain served to peers; `chain` holds wire blocks."""

    length: int
    chain: list[dict[str, Any]]


class ReceiveResponse(BaseModel):
    index: int | None
    accepted: bool
    status: str
    reason: str


class HealResponse(BaseModel):
    healed_from: str | None
    block_count: int
