# src/kl_chain/domain/repository.py
"""Block Store Protocol — dependency inversion for testability.

The chain engine depends only on this Protocol. Infrastructure provides a
SQL-backed store (durable) and an in-memory store (ephemeral nodes, tests).
Every read returns fresh Block objects in ascending index order.
"""

from typing import Any, Protocol

from src.kl_chain.domain.models import Block


class BlockStoreProtocol(Protocol):
    async def get_all(self) -> list[Block]: ...

    async def get_latest(self) -> Block | None: ...

    async def get_by_index(self, index: int) -> Block | None: ...

    async def get_by_subject(self, subject_id: str) -> list[Block]:
        """Blocks whose payload kitID equals `subject_id`, ascending by index."""
        ...

    async def count(self) -> int: ...

    async def write(self, block: Block) -> None: ...

    async def delete(self, index: int) -> bool: ...

    async def replace_all(self, blocks: list[Block]) -> None:
        """Atomically clear the store and write `blocks` in order."""
        ...


class ChainSourceProtocol(Protocol):
    """Remote source of a full chain (a peer node)."""

    async def fetch_chain(self, peer: str) -> list[dict[str, Any]]:
        """Raw wire records; raises UnavailablePeerError when unreachable."""
        ...
