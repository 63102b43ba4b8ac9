"""Test helpers shared by unit and integration tests."""

import asyncio
from typing import Any

from httpx import AsyncClient

from src.kl_chain.domain.hashing import GENESIS_PREVIOUS_HASH, compute_hash
from src.kl_chain.domain.models import Block
from src.kl_chain.infrastructure.memory_store import InMemoryBlockStore
from src.kl_common.errors import UnavailablePeerError


def make_chain(payloads: list[dict[str, Any]]) -> list[Block]:
    """Valid, linked chain with deterministic timestamps (one second apart)."""
    blocks: list[Block] = []
    previous = GENESIS_PREVIOUS_HASH
    for i, data in enumerate(payloads):
        timestamp = f"2026-03-01T10:00:{i:02d}.000Z"
        block = Block(
            index=i,
            timestamp=timestamp,
            data=data,
            previous_hash=previous,
            hash=compute_hash(i, timestamp, data, previous),
        )
        blocks.append(block)
        previous = block.hash
    return blocks


def kit_payloads(*kit_ids: str) -> list[dict[str, Any]]:
    return [{"kitID": k, "type": "Emergency", "location": "Geneva"} for k in kit_ids]


class YieldingBlockStore(InMemoryBlockStore):
    """InMemoryBlockStore that suspends after every read and before every write.

    Gives other tasks a chance to run between a caller's read and its write,
    the way a database round trip would.
    """

    async def get_all(self) -> list[Block]:
        blocks = await super().get_all()
        await asyncio.sleep(0)
        return blocks

    async def get_latest(self) -> Block | None:
        block = await super().get_latest()
        await asyncio.sleep(0)
        return block

    async def get_by_index(self, index: int) -> Block | None:
        block = await super().get_by_index(index)
        await asyncio.sleep(0)
        return block

    async def get_by_subject(self, subject_id: str) -> list[Block]:
        blocks = await super().get_by_subject(subject_id)
        await asyncio.sleep(0)
        return blocks

    async def count(self) -> int:
        n = await super().count()
        await asyncio.sleep(0)
        return n

    async def write(self, block: Block) -> None:
        await asyncio.sleep(0)
        await super().write(block)

    async def replace_all(self, blocks: list[Block]) -> None:
        await asyncio.sleep(0)
        await super().replace_all(blocks)


class FakePeerClient:
    """In-process stand-in for HttpPeerClient.

    `chains` maps peer URL -> wire chain served by that peer; peers missing
    from the map, or listed in `down`, are unreachable for fetches.
    """

    def __init__(
        self,
        chains: dict[str, list[dict[str, Any]]] | None = None,
        down: set[str] | None = None,
    ) -> None:
        self.chains = chains or {}
        self.down = down or set()
        self.pushed: list[tuple[str, dict[str, Any]]] = []
        self.announced: list[tuple[str, str]] = []
        self.fetched: list[str] = []
        self.closed = False

    async def push_block(self, peer: str, block: dict[str, Any]) -> None:
        if peer in self.down:
            raise UnavailablePeerError(peer, "ConnectError")
        self.pushed.append((peer, block))

    async def fetch_chain(self, peer: str) -> list[dict[str, Any]]:
        self.fetched.append(peer)
        if peer in self.down or peer not in self.chains:
            raise UnavailablePeerError(peer, "ConnectError")
        return self.chains[peer]

    async def announce(self, peer: str, self_url: str) -> None:
        if peer in self.down:
            raise UnavailablePeerError(peer, "ConnectError")
        self.announced.append((peer, self_url))

    async def aclose(self) -> None:
        self.closed = True


async def login_headers(client: AsyncClient, email: str, password: str) -> dict[str, str]:
    resp = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


async def approved_user_headers(
    client: AsyncClient,
    admin_headers: dict[str, str],
    email: str,
    role: str = "user",
    password: str = "Secret123",
) -> dict[str, str]:
    """Register `email`, have the admin approve it, and log it in."""
    resp = await client.post(
        "/api/v1/auth/register", json={"email": email, "password": password, "role": role}
    )
    assert resp.status_code == 201, resp.text
    user_id = resp.json()["data"]["user_id"]
    resp = await client.post(
        f"/api/v1/admin/users/{user_id}/approve", json={}, headers=admin_headers
    )
    assert resp.status_code == 200, resp.text
    return await login_headers(client, email, password)
