"""001: create blocks table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # data holds the payload JSON exactly as it is re-hashed; TEXT, not JSONB,
    # so key order and number formatting survive the round trip.
    op.execute("""
        CREATE TABLE blocks (
            block_index     BIGINT       PRIMARY KEY CHECK (block_index >= 0),
            timestamp       VARCHAR(32)  NOT NULL,
            data            TEXT         NOT NULL,
            previous_hash   CHAR(64)     NOT NULL,
            hash            CHAR(64)     NOT NULL,
            status          VARCHAR(16),
            created_at      TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("CREATE INDEX idx_blocks_hash ON blocks (hash);")
    # Kit history lookups filter on data->>'kitID'.
    op.execute("CREATE INDEX idx_blocks_kit_id ON blocks (((data::jsonb)->>'kitID'));")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS blocks;")
