"""Create log_records, event_log and log_vectors

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-09-30 10:12:00.000000

log_records holds the canonical column set, event_log the legacy flat
shape (read, and written as a fallback). log_vectors carries one pgvector
embedding per record.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

from alembic import op

revision: str = "3f1a9c2b7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIMENSIONS = 384


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "log_records",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("operation_id", sa.String(100), nullable=True),
        sa.Column("original_operation_id", sa.String(100), nullable=True),
        sa.Column("kind", sa.String(100), nullable=False),
        sa.Column("level", sa.String(20), nullable=False, server_default="info"),
        sa.Column("source", sa.String(100), nullable=True),
        sa.Column("session_id", sa.String(200), nullable=True),
        sa.Column("tags", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("trace_id", sa.String(200), nullable=True),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("error_code", sa.String(100), nullable=True),
        sa.Column("artifact_key", sa.String(500), nullable=True),
        sa.Column("idx1", sa.String(200), nullable=True),
        sa.Column("idx2", sa.String(200), nullable=True),
        sa.Column("has_embedding", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_log_records_timestamp", "log_records", ["timestamp"])
    op.create_index("ix_log_records_session_id", "log_records", ["session_id"])
    op.create_index("ix_log_records_kind", "log_records", ["kind"])

    op.create_table(
        "event_log",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("ts", sa.Text(), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("who", sa.String(100), nullable=True),
        sa.Column("level", sa.String(20), nullable=True),
        sa.Column("session_id", sa.String(200), nullable=True),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column("payload", sa.Text(), nullable=True),
    )

    op.create_table(
        "log_vectors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("embedding", Vector(EMBEDDING_DIMENSIONS), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("kind", sa.String(100), nullable=False),
        sa.Column("operation_id", sa.String(100), nullable=True),
        sa.Column("level", sa.String(20), nullable=True),
        sa.Column("source", sa.String(100), nullable=True),
        sa.Column("session_id", sa.String(200), nullable=True),
        sa.Column("tags", sa.Text(), nullable=False, server_default="[]"),
    )
    op.execute(
        "CREATE INDEX ix_log_vectors_embedding_hnsw ON log_vectors "
        "USING hnsw (embedding vector_cosine_ops)"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_log_vectors_embedding_hnsw")
    op.drop_table("log_vectors")
    op.drop_table("event_log")
    op.drop_index("ix_log_records_kind", table_name="log_records")
    op.drop_index("ix_log_records_session_id", table_name="log_records")
    op.drop_index("ix_log_records_timestamp", table_name="log_records")
    op.drop_table("log_records")
