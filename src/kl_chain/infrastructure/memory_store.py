"""InMemoryBlockStore — process-local Block Store.

Blocks are kept in their wire form and rebuilt on every read, so callers
never share mutable payload dicts with the store.
"""

import copy
from typing import Any

from src.kl_chain.domain.models import Block


class InMemoryBlockStore:
    def __init__(self, blocks: list[Block] | None = None) -> None:
        self._records: dict[int, dict[str, Any]] = {}
        for block in blocks or []:
            self._records[block.index] = copy.deepcopy(block.to_wire())

    def _load(self, index: int) -> Block:
        return Block.from_wire(copy.deepcopy(self._records[index]))

    async def get_all(self) -> list[Block]:
        return [self._load(i) for i in sorted(self._records)]

    async def get_latest(self) -> Block | None:
        if not self._records:
            return None
        return self._load(max(self._records))

    async def get_by_index(self, index: int) -> Block | None:
        if index not in self._records:
            return None
        return self._load(index)

    async def get_by_subject(self, subject_id: str) -> list[Block]:
        return [
            self._load(i)
            for i in sorted(self._records)
            if self._records[i]["data"].get("kitID") == subject_id
        ]

    async def count(self) -> int:
        return len(self._records)

    async def write(self, block: Block) -> None:
        self._records[block.index] = copy.deepcopy(block.to_wire())

    async def delete(self, index: int) -> bool:
        return self._records.pop(index, None) is not None

    async def replace_all(self, blocks: list[Block]) -> None:
        # Build the new mapping first so a failure leaves the old one in place
        records = {b.index: copy.deepcopy(b.to_wire()) for b in blocks}
        self._records = records
