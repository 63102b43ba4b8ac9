"""Chain verification and tamper detection — pure functions over block sequences."""

from collections.abc import Sequence

from src.kl_chain.domain.hashing import compute_hash
from src.kl_chain.domain.models import Block, TamperFinding
from src.kl_common.enums import BlockStatus, TamperReason


def expected_hash(block: Block) -> str:
    return compute_hash(block.index, block.timestamp, block.data, block.previous_hash)


def block_hash_is_valid(block: Block) -> bool:
    return block.hash == expected_hash(block)


def verify_chain(blocks: Sequence[Block]) -> bool:
    """True iff every block hashes correctly and links to its predecessor.

    Short-circuits on the first mismatch; use detect_tampering for a full report.
    """
    for i, block in enumerate(blocks):
        if not block_hash_is_valid(block):
            return False
        if i > 0 and block.previous_hash != blocks[i - 1].hash:
            return False
    return True


def detect_tampering(blocks: Sequence[Block]) -> list[TamperFinding]:
    """Report every block whose own hash or predecessor link is wrong.

    A block is reported at most once; an invalid own hash takes precedence
    over a broken link. Links compare against the predecessor's stored hash,
    so editing one block's payload flags that block only.
    """
    findings: list[TamperFinding] = []
    for i, block in enumerate(blocks):
        recomputed = expected_hash(block)
        if block.hash != recomputed:
            findings.append(
                TamperFinding(
                    index=block.index,
                    reason=TamperReason.INVALID_HASH.value,
                    expected=recomputed,
                    actual=block.hash,
                )
            )
            continue
        if i > 0 and block.previous_hash != blocks[i - 1].hash:
            findings.append(
                TamperFinding(
                    index=block.index,
                    reason=TamperReason.BROKEN_LINK.value,
                    expected=blocks[i - 1].hash,
                    actual=block.previous_hash,
                )
            )
    return findings


def classify_block(block: Block) -> BlockStatus:
    """Verification tag for a structurally complete block."""
    return BlockStatus.VERIFIED if block_hash_is_valid(block) else BlockStatus.TAMPERED
