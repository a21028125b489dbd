"""
Vademecum SQLAlchemy Models

One table of canonical medications with a pgvector embedding column.
Uses SQLAlchemy 2.0 patterns with async support.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import ARRAY, DateTime, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from vademecum.config import DEFAULT_EMBEDDING_DIMENSION
from vademecum.rag.schemas import MedicationMetadata, MedicationRecord

# ============================================
# Configuration
# ============================================

# paraphrase-multilingual-MiniLM-L12-v2 produces 384-dim vectors
EMBEDDING_DIMENSION = DEFAULT_EMBEDDING_DIMENSION


# ============================================
# Base Model
# ============================================


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    type_annotation_map = {
        dict[str, Any]: JSONB,
    }


class TimestampMixin:
    """Mixin adding created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# ============================================
# Medication Model
# ============================================


class Medication(Base, TimestampMixin):
    """Canonical medication record, unique by lower(generic_name)."""

    __tablename__ = "medications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    generic_name: Mapped[str] = mapped_column(String(255), nullable=False)
    commercial_names: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list
    )
    active_ingredient: Mapped[str | None] = mapped_column(Text, nullable=True)
    therapeutic_group: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    medication_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, nullable=False, default=dict
    )
    embedding: Mapped[list[float] | None] = mapped_column(
        Vector(EMBEDDING_DIMENSION),
        nullable=True,
    )
    source: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Indexes (HNSW vector index created via migration)
    __table_args__ = (Index("idx_medications_therapeutic_group", "therapeutic_group"),)

    def to_record(self) -> MedicationRecord:
        embedding = None
        if self.embedding is not None:
            embedding = [float(v) for v in self.embedding]
        return MedicationRecord(
            id=self.id,
            generic_name=self.generic_name,
            commercial_names=list(self.commercial_names or []),
            active_ingredient=self.active_ingredient,
            therapeutic_group=self.therapeutic_group,
            content=self.content,
            metadata=MedicationMetadata.model_validate(self.medication_metadata or {}),
            embedding=embedding,
            source=self.source,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Medication(id={self.id}, generic_name='{self.generic_name}')>"


# Case-insensitive uniqueness; also the ON CONFLICT target of the upsert
Index(
    "uq_medications_generic_name_lower",
    func.lower(Medication.generic_name),
    unique=True,
)
