"""Domain models for kl_chain — pure dataclasses, no persistence dependency."""

from dataclasses import dataclass, field
from typing import Any

_WIRE_FIELDS = ("index", "timestamp", "data", "previousHash", "hash")


@dataclass(frozen=True)
class Block:
    """One immutable, hash-linked ledger entry.

    `status` is a verification tag set on receipt from a peer; it is not part
    of the hash input.
    """

    index: int
    timestamp: str                 # canonical ISO-8601 string, hashed verbatim
    data: dict[str, Any]
    previous_hash: str
    hash: str
    status: str | None = None

    @property
    def subject_id(self) -> str | None:
        value = self.data.get("kitID")
        return value if isinstance(value, str) else None

    def to_wire(self) -> dict[str, Any]:
        """Durable/gossip record format (camelCase keys)."""
        wire: dict[str, Any] = {
            "index": self.index,
            "timestamp": self.timestamp,
            "data": self.data,
            "previousHash": self.previous_hash,
            "hash": self.hash,
        }
        if self.status is not None:
            wire["status"] = self.status
        return wire

    @classmethod
    def from_wire(cls, raw: Any) -> "Block":
        """Parse a wire record. Raises ValueError on a structurally incomplete block."""
        if not isinstance(raw, dict):
            raise ValueError("block must be a JSON object")
        missing = [f for f in _WIRE_FIELDS if f not in raw or raw[f] is None]
        if missing:
            raise ValueError(f"missing fields: {', '.join(missing)}")
        index = raw["index"]
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise ValueError(f"index must be a non-negative integer, got {index!r}")
        if not isinstance(raw["data"], dict):
            raise ValueError("data must be a JSON object")
        for name in ("timestamp", "previousHash", "hash"):
            if not isinstance(raw[name], str) or not raw[name]:
                raise ValueError(f"{name} must be a non-empty string")
        status = raw.get("status")
        return cls(
            index=index,
            timestamp=raw["timestamp"],
            data=raw["data"],
            previous_hash=raw["previousHash"],
            hash=raw["hash"],
            status=status if isinstance(status, str) else None,
        )


@dataclass(frozen=True)
class TamperFinding:
    """A block whose own hash or link to its predecessor does not verify."""

    index: int
    reason: str                    # TamperReason value
    expected: str
    actual: str


@dataclass
class AuditReport:
    status: str                    # AuditStatus value
    block_count: int
    findings: list[TamperFinding] = field(default_factory=list)


@dataclass(frozen=True)
class SubjectBlockCheck:
    """Per-block result of a subject-scoped tamper check."""

    index: int
    timestamp: str
    status: str                    # BlockStatus value
    hash_valid: bool
