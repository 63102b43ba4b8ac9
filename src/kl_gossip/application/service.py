"""GossipService: peer registry, block broadcast, block receipt and startup sync.

Broadcast is fire-and-forget from the caller's point of view: a committed
append schedules one background broadcast task and returns. Each per-peer
push is bounded by a timeout; failures are logged per peer and never
propagate to the appender.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.kl_chain.application.service import ChainEngine
from src.kl_chain.domain.models import Block
from src.kl_chain.domain.verification import classify_block
from src.kl_common.enums import BlockStatus
from src.kl_common.errors import UnavailablePeerError
from src.kl_gossip.domain.peers import PeerRegistry

logger = logging.getLogger(__name__)


class PeerClientProtocol(Protocol):
    async def push_block(self, peer: str, block: dict[str, Any]) -> None: ...

    async def fetch_chain(self, peer: str) -> list[dict[str, Any]]: ...

    async def announce(self, peer: str, self_url: str) -> None: ...

    async def aclose(self) -> None: ...


@dataclass
class BroadcastReport:
    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReceiveResult:
    accepted: bool
    status: str            # BlockStatus value assigned on receipt
    reason: str            # stored | duplicate | conflict | stale | invalid_hash | malformed
    index: int | None = None


class GossipService:
    def __init__(
        self,
        chain: ChainEngine,
        client: PeerClientProtocol,
        registry: PeerRegistry | None = None,
        push_timeout: float = 5.0,
    ) -> None:
        self._chain = chain
        self._client = client
        self._registry = registry or PeerRegistry()
        self._push_timeout = push_timeout
        self._tasks: set[asyncio.Task[BroadcastReport]] = set()

    # ------------------------------------------------------------------
    # Peer registry
    # ------------------------------------------------------------------

    def register_peer(self, address: str) -> bool:
        added = self._registry.add(address)
        if added:
            logger.info("Registered peer %s", address)
        return added

    def peers(self) -> list[str]:
        return self._registry.snapshot()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def _push(self, peer: str, wire: dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(self._client.push_block(peer, wire), timeout=self._push_timeout)
        except UnavailablePeerError as e:
            logger.warning("Failed to broadcast block %d to %s: %s", wire["index"], peer, e.message)
            return False
        except TimeoutError:
            logger.warning("Broadcast of block %d to %s timed out", wire["index"], peer)
            return False
        return True

    async def broadcast(self, block: Block) -> BroadcastReport:
        """Push `block` to every registered peer concurrently."""
        peers = self._registry.snapshot()
        report = BroadcastReport()
        if not peers:
            return report
        wire = block.to_wire()
        results = await asyncio.gather(*(self._push(peer, wire) for peer in peers))
        for peer, ok in zip(peers, results, strict=True):
            (report.delivered if ok else report.failed).append(peer)
        logger.info(
            "Block %d broadcast: %d delivered, %d failed",
            block.index,
            len(report.delivered),
            len(report.failed),
        )
        return report

    def schedule_broadcast(self, block: Block) -> asyncio.Task[BroadcastReport]:
        """Start `broadcast(block)` in the background and return immediately."""
        task = asyncio.create_task(self.broadcast(block), name=f"broadcast-{block.index}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def announce(self, self_url: str) -> int:
        """Ask every registered peer to register `self_url`. Returns the success count."""
        announced = 0
        for peer in self._registry.snapshot():
            try:
                await asyncio.wait_for(
                    self._client.announce(peer, self_url), timeout=self._push_timeout
                )
            except (UnavailablePeerError, TimeoutError):
                logger.warning("Could not announce %s to peer %s", self_url, peer)
                continue
            announced += 1
        return announced

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def receive(self, raw: Any) -> ReceiveResult:
        """Tag and admit a block pushed by a peer.

        Structurally incomplete blocks are tagged unverified, blocks whose
        hash does not recompute are tagged tampered; both are rejected
        without touching the store.
        """
        try:
            block = Block.from_wire(raw)
        except ValueError as e:
            logger.warning("Rejected unverified block from peer: %s", e)
            index = raw.get("index") if isinstance(raw, dict) else None
            return ReceiveResult(
                False,
                BlockStatus.UNVERIFIED.value,
                "malformed",
                index if isinstance(index, int) else None,
            )

        status = classify_block(block)
        if status == BlockStatus.TAMPERED:
            logger.warning("Rejected tampered block %d from peer", block.index)
            return ReceiveResult(False, status.value, "invalid_hash", block.index)

        tagged = Block(
            index=block.index,
            timestamp=block.timestamp,
            data=block.data,
            previous_hash=block.previous_hash,
            hash=block.hash,
            status=status.value,
        )
        outcome = await self._chain.admit_received_block(tagged)
        return ReceiveResult(outcome.accepted, status.value, outcome.reason, block.index)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def initialize_sync(self, known_peers: list[str]) -> str | None:
        """Register `known_peers` and sync from the first one that responds."""
        for address in known_peers:
            self.register_peer(address)
        for peer in self._registry.snapshot():
            if await self._chain.sync_from_peer(peer):
                logger.info("Initial sync completed from %s", peer)
                return peer
        if known_peers:
            logger.warning("Initial sync failed: no known peer was reachable")
        return None

    async def heal(self) -> str | None:
        """Re-sync from registered peers in order; first usable peer wins."""
        for peer in self._registry.snapshot():
            if await self._chain.sync_from_peer(peer):
                return peer
        logger.warning("Heal failed: no registered peer yielded a usable chain")
        return None

    async def drain(self) -> None:
        """Wait for every broadcast scheduled so far to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Wait for in-flight broadcasts, then release the HTTP client."""
        await self.drain()
        await self._client.aclose()
