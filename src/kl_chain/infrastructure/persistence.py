# src/kl_chain/infrastructure/persistence.py
"""SqlBlockStore — raw SQL persistence for the blocks table.

One row per block. `data` is stored as JSON text exactly as it will be
re-hashed; alembic/versions/001_create_blocks.py is the authoritative DDL.
Each call opens its own session so the store can be shared by request
handlers and background gossip tasks alike.
"""
import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.kl_chain.domain.models import Block

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = "block_index, timestamp, data, previous_hash, hash, status"

_GET_ALL_SQL = text(f"SELECT {_SELECT_COLUMNS} FROM blocks ORDER BY block_index ASC")

_GET_LATEST_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM blocks ORDER BY block_index DESC LIMIT 1"
)

_GET_BY_INDEX_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM blocks WHERE block_index = :block_index"
)

# Served by idx_blocks_kit_id; the expression must match the index definition.
_GET_BY_SUBJECT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS} FROM blocks
    WHERE (data::jsonb)->>'kitID' = :subject_id
    ORDER BY block_index ASC
""")

_COUNT_SQL = text("SELECT COUNT(*) FROM blocks")

_INSERT_SQL = text("""
    INSERT INTO blocks (block_index, timestamp, data, previous_hash, hash, status)
    VALUES (:block_index, :timestamp, :data, :previous_hash, :hash, :status)
""")

_DELETE_SQL = text("DELETE FROM blocks WHERE block_index = :block_index")

_DELETE_ALL_SQL = text("DELETE FROM blocks")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_block(row: Any) -> Block:
    data = row.data
    if isinstance(data, str):
        data = json.loads(data)
    return Block(
        index=row.block_index,
        timestamp=row.timestamp,
        data=data,
        previous_hash=row.previous_hash,
        hash=row.hash,
        status=row.status,
    )


def _block_params(block: Block) -> dict[str, Any]:
    return {
        "block_index": block.index,
        "timestamp": block.timestamp,
        "data": json.dumps(block.data, ensure_ascii=False),
        "previous_hash": block.previous_hash,
        "hash": block.hash,
        "status": block.status,
    }


class SqlBlockStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_all(self) -> list[Block]:
        async with self._session_factory() as db:
            rows = (await db.execute(_GET_ALL_SQL)).fetchall()
        return [_row_to_block(r) for r in rows]

    async def get_latest(self) -> Block | None:
        async with self._session_factory() as db:
            row = (await db.execute(_GET_LATEST_SQL)).fetchone()
        return _row_to_block(row) if row is not None else None

    async def get_by_index(self, index: int) -> Block | None:
        async with self._session_factory() as db:
            row = (
                await db.execute(_GET_BY_INDEX_SQL, {"block_index": index})
            ).fetchone()
        return _row_to_block(row) if row is not None else None

    async def get_by_subject(self, subject_id: str) -> list[Block]:
        async with self._session_factory() as db:
            rows = (
                await db.execute(_GET_BY_SUBJECT_SQL, {"subject_id": subject_id})
            ).fetchall()
        return [_row_to_block(r) for r in rows]

    async def count(self) -> int:
        async with self._session_factory() as db:
            return int((await db.execute(_COUNT_SQL)).scalar_one())

    async def write(self, block: Block) -> None:
        async with self._session_factory() as db:
            async with db.begin():
                await db.execute(_INSERT_SQL, _block_params(block))

    async def delete(self, index: int) -> bool:
        async with self._session_factory() as db:
            async with db.begin():
                result: Any = await db.execute(_DELETE_SQL, {"block_index": index})
        return bool(result.rowcount)

    async def replace_all(self, blocks: list[Block]) -> None:
        """Delete + re-insert inside one transaction; rolls back on any failure."""
        async with self._session_factory() as db:
            async with db.begin():
                await db.execute(_DELETE_ALL_SQL)
                for block in blocks:
                    await db.execute(_INSERT_SQL, _block_params(block))
