"""ChainEngine — owns the local hash chain.

All mutating operations (append, receive, replace, rollback) run under one
asyncio.Lock so two appends can never compute the same next index and a
chain replacement never interleaves with an in-flight append. Reads go
straight to the store, which hands out copies.

Broadcasting a freshly appended block is NOT done here: the caller schedules
it on the gossip layer after the append has committed.
"""

import asyncio
import copy
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from src.kl_chain.domain.hashing import GENESIS_PREVIOUS_HASH, compute_hash
from src.kl_chain.domain.models import AuditReport, Block, SubjectBlockCheck, TamperFinding
from src.kl_chain.domain.repository import BlockStoreProtocol, ChainSourceProtocol
from src.kl_chain.domain.verification import (
    block_hash_is_valid,
    detect_tampering,
    verify_chain,
)
from src.kl_common.datetime_utils import iso_timestamp
from src.kl_common.enums import AuditStatus, BlockStatus
from src.kl_common.errors import (
    RecordValidationError,
    SubjectNotFoundError,
    UnavailablePeerError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptOutcome:
    """Result of admitting a peer-pushed block."""

    accepted: bool
    reason: str        # stored | duplicate | invalid_hash | conflict | stale


class ChainEngine:
    def __init__(
        self,
        store: BlockStoreProtocol,
        peer_source: ChainSourceProtocol | None = None,
        sync_timeout: float = 10.0,
    ) -> None:
        self._store = store
        self._peer_source = peer_source
        self._sync_timeout = sync_timeout
        self._lock = asyncio.Lock()

    @staticmethod
    def compute_hash(index: int, timestamp: str, data: Any, previous_hash: str) -> str:
        return compute_hash(index, timestamp, data, previous_hash)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_latest(self) -> Block | None:
        return await self._store.get_latest()

    async def get_full_chain(self) -> list[Block]:
        return await self._store.get_all()

    async def get_history(self, subject_id: str) -> list[Block]:
        """Blocks whose payload names `subject_id`, in creation order."""
        return await self._store.get_by_subject(subject_id)

    async def get_latest_for_subject(self, subject_id: str) -> Block | None:
        history = await self.get_history(subject_id)
        return history[-1] if history else None

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify_chain(self, blocks: Sequence[Block]) -> bool:
        return verify_chain(blocks)

    def detect_tampering(self, blocks: Sequence[Block]) -> list[TamperFinding]:
        return detect_tampering(blocks)

    async def audit(self) -> AuditReport:
        """Full-chain integrity report. Never repairs anything."""
        blocks = await self._store.get_all()
        if not blocks:
            return AuditReport(status=AuditStatus.EMPTY.value, block_count=0)
        findings = detect_tampering(blocks)
        status = AuditStatus.TAMPERED if findings else AuditStatus.SECURE
        if findings:
            logger.warning(
                "Audit found %d tampered block(s): %s",
                len(findings),
                [f.index for f in findings],
            )
        return AuditReport(status=status.value, block_count=len(blocks), findings=findings)

    async def tamper_check(self, subject_id: str) -> list[SubjectBlockCheck]:
        history = await self.get_history(subject_id)
        if not history:
            raise SubjectNotFoundError(subject_id)
        checks = []
        for block in history:
            valid = block_hash_is_valid(block)
            checks.append(
                SubjectBlockCheck(
                    index=block.index,
                    timestamp=block.timestamp,
                    status=(BlockStatus.VERIFIED if valid else BlockStatus.TAMPERED).value,
                    hash_valid=valid,
                )
            )
        return checks

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def append_record(
        self, payload: dict[str, Any], *, require_new_subject: bool = False
    ) -> Block:
        """Append `payload` as the next block.

        With `require_new_subject`, the payload's kitID must not appear in any
        stored block; the check and the write happen under the same lock.
        """
        async with self._lock:
            if require_new_subject:
                subject_id = payload.get("kitID")
                if await self._store.get_by_subject(subject_id):
                    raise RecordValidationError([f"Kit already registered: {subject_id}"])
            latest = await self._store.get_latest()
            index = latest.index + 1 if latest else 0
            previous_hash = latest.hash if latest else GENESIS_PREVIOUS_HASH
            timestamp = iso_timestamp()
            data = copy.deepcopy(payload)
            block = Block(
                index=index,
                timestamp=timestamp,
                data=data,
                previous_hash=previous_hash,
                hash=compute_hash(index, timestamp, data, previous_hash),
            )
            await self._store.write(block)
        logger.info("Block %d added to ledger", block.index)
        return block

    async def admit_received_block(self, block: Block) -> ReceiptOutcome:
        """Validate and store a block pushed by a peer.

        The block's previous_hash is not cross-checked against the local
        predecessor; only its own hash, index collisions and staleness are.
        """
        if not block_hash_is_valid(block):
            logger.warning("Rejected block %d: invalid hash", block.index)
            return ReceiptOutcome(False, "invalid_hash")

        async with self._lock:
            existing = await self._store.get_by_index(block.index)
            if existing is not None:
                if existing.hash == block.hash:
                    return ReceiptOutcome(True, "duplicate")
                logger.warning(
                    "Rejected block %d: conflicts with stored block (%s != %s)",
                    block.index,
                    block.hash[:12],
                    existing.hash[:12],
                )
                return ReceiptOutcome(False, "conflict")

            latest = await self._store.get_latest()
            if latest is not None and block.index <= latest.index:
                logger.warning(
                    "Rejected block %d: stale (local latest is %d)", block.index, latest.index
                )
                return ReceiptOutcome(False, "stale")

            await self._store.write(block)
        logger.info("Block %d received and added to ledger from peer", block.index)
        return ReceiptOutcome(True, "stored")

    async def save_received_block(self, block: Block) -> bool:
        return (await self.admit_received_block(block)).accepted

    async def replace_chain(self, candidate: Sequence[Block]) -> bool:
        """Longest-valid-chain-wins. Not Byzantine fault tolerant.

        Accepts only a candidate that is strictly longer than the local chain,
        indexed 0..n-1, and passes verify_chain; the store is then rewritten
        atomically. On rejection local state is untouched.
        """
        blocks = list(candidate)
        if not blocks:
            return False
        if [b.index for b in blocks] != list(range(len(blocks))):
            logger.warning("Rejected candidate chain: indices are not contiguous from 0")
            return False
        if not verify_chain(blocks):
            logger.warning("Rejected candidate chain of %d blocks: failed verification", len(blocks))
            return False

        async with self._lock:
            local_length = await self._store.count()
            if len(blocks) <= local_length:
                logger.info(
                    "Kept local chain (%d blocks); candidate has %d",
                    local_length,
                    len(blocks),
                )
                return False
            await self._store.replace_all(blocks)
        logger.warning(
            "Local chain replaced: %d -> %d blocks", local_length, len(blocks)
        )
        return True

    async def sync_from_peer(self, peer: str) -> bool:
        """Fetch `peer`'s chain and adopt it if longer and valid.

        Returns True when the peer yielded a usable chain (reachable,
        well-formed, internally valid), whether or not it replaced ours.
        """
        if self._peer_source is None:
            logger.warning("No peer source configured; cannot sync from %s", peer)
            return False
        try:
            raw = await asyncio.wait_for(
                self._peer_source.fetch_chain(peer), timeout=self._sync_timeout
            )
        except UnavailablePeerError as e:
            logger.warning("Sync with %s failed: %s", peer, e.message)
            return False
        except TimeoutError:
            logger.warning("Sync with %s timed out after %.1fs", peer, self._sync_timeout)
            return False

        try:
            candidate = [Block.from_wire(record) for record in raw]
        except ValueError as e:
            logger.warning("Peer %s returned a malformed chain: %s", peer, e)
            return False
        if candidate and not verify_chain(candidate):
            logger.warning("Peer %s returned a chain that fails verification", peer)
            return False

        if await self.replace_chain(candidate):
            logger.info("Synced with peer %s; local chain updated", peer)
        else:
            logger.info("Synced with peer %s; local chain kept", peer)
        return True

    async def rollback_subject(self, subject_id: str) -> Block:
        """Admin maintenance: delete the most recent block for a subject.

        Breaks forward linkage for any later block; the next audit reports it.
        """
        async with self._lock:
            history = await self._store.get_by_subject(subject_id)
            if not history:
                raise SubjectNotFoundError(subject_id)
            target = history[-1]
            await self._store.delete(target.index)
        logger.warning(
            "ROLLBACK: deleted block %d for kit %s", target.index, subject_id
        )
        return target
