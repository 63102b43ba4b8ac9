"""Pydantic schemas for kl_chain API responses.

Blocks are serialised in their wire form (camelCase `previousHash`) so the
same JSON is served to browsers and to peer nodes.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.kl_chain.domain.models import AuditReport, Block, SubjectBlockCheck, TamperFinding


class BlockOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    index: int
    timestamp: str
    data: dict[str, Any]
    previous_hash: str = Field(alias="previousHash")
    hash: str
    status: str | None = None

    @classmethod
    def from_domain(cls, block: Block) -> "BlockOut":
        return cls(
            index=block.index,
            timestamp=block.timestamp,
            data=block.data,
            previous_hash=block.previous_hash,
            hash=block.hash,
            status=block.status,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def blocks_to_wire(blocks: list[Block]) -> list[dict[str, Any]]:
    return [BlockOut.from_domain(b).to_wire() for b in blocks]


class ChainResponse(BaseModel):
    block_count: int
    blocks: list[dict[str, Any]]

    @classmethod
    def from_blocks(cls, blocks: list[Block]) -> "ChainResponse":
        return cls(block_count=len(blocks), blocks=blocks_to_wire(blocks))


class HistoryResponse(BaseModel):
    kit_id: str
    record_count: int
    history: list[dict[str, Any]]


class TamperFindingOut(BaseModel):
    index: int
    reason: str
    expected: str
    actual: str

    @classmethod
    def from_domain(cls, finding: TamperFinding) -> "TamperFindingOut":
        return cls(
            index=finding.index,
            reason=finding.reason,
            expected=finding.expected,
            actual=finding.actual,
        )


class AuditResponse(BaseModel):
    status: str
    block_count: int
    tampered_block_count: int
    tampered_blocks: list[TamperFindingOut]

    @classmethod
    def from_report(cls, report: AuditReport) -> "AuditResponse":
        return cls(
            status=report.status,
            block_count=report.block_count,
            tampered_block_count=len(report.findings),
            tampered_blocks=[TamperFindingOut.from_domain(f) for f in report.findings],
        )


class BlockCheckOut(BaseModel):
    index: int
    timestamp: str
    status: str
    hash_valid: bool


class TamperCheckResponse(BaseModel):
    kit_id: str
    overall_status: str         # "secure" | "tampered"
    tampered_count: int
    total_count: int
    blocks: list[BlockCheckOut]

    @classmethod
    def from_checks(cls, kit_id: str, checks: list[SubjectBlockCheck]) -> "TamperCheckResponse":
        tampered = sum(1 for c in checks if not c.hash_valid)
        return cls(
            kit_id=kit_id,
            overall_status="tampered" if tampered else "secure",
            tampered_count=tampered,
            total_count=len(checks),
            blocks=[
                BlockCheckOut(
                    index=c.index, timestamp=c.timestamp, status=c.status, hash_valid=c.hash_valid
                )
                for c in checks
            ],
        )
