"""Medications table

Revision ID: 001_medications
Revises:
Create Date: 2026-10-18

Canonical medication records with a pgvector embedding column,
case-insensitive uniqueness on the generic name and an HNSW cosine index.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision: str = "001_medications"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIMENSION = 384


def upgrade() -> None:
    """Create the medications table and indexes."""

    # Enable extensions
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ========================================
    # Medications table
    # ========================================
    op.create_table(
        "medications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("uuid_generate_v4()")),
        sa.Column("generic_name", sa.String(255), nullable=False),
        sa.Column("commercial_names", postgresql.ARRAY(sa.Text()),
                  server_default=sa.text("'{}'"), nullable=False),
        sa.Column("active_ingredient", sa.Text(), nullable=True),
        sa.Column("therapeutic_group", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("metadata", postgresql.JSONB(),
                  server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("embedding", Vector(EMBEDDING_DIMENSION), nullable=True),
        sa.Column("source", sa.Text(), server_default="", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  server_default=sa.text("NOW()"), nullable=False),
    )

    # Upsert conflict target
    op.execute("""
        CREATE UNIQUE INDEX uq_medications_generic_name_lower
        ON medications (lower(generic_name))
    """)
    op.create_index(
        "idx_medications_therapeutic_group", "medications", ["therapeutic_group"]
    )

    # HNSW vector index for cosine similarity search
    op.execute("""
        CREATE INDEX idx_medications_embedding ON medications
        USING hnsw (embedding vector_cosine_ops)
    """)


def downgrade() -> None:
    """Drop the medications table."""
    op.drop_index("idx_medications_embedding", table_name="medications")
    op.drop_index("idx_medications_therapeutic_group", table_name="medications")
    op.drop_index("uq_medications_generic_name_lower", table_name="medications")
    op.drop_table("medications")

    # Note: Extensions are not dropped to avoid affecting other databases
