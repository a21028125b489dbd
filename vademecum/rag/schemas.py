"""
Vademecum Data Models

Pydantic models shared by ingestion, storage and the query path.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================
# Extracted Fields
# ============================================


class DrugInteraction(BaseModel):
    """A declared interaction partner and its effect."""

    partner_drug: str
    effect: str
    severity: str | None = None


class MedicationMetadata(BaseModel):
    """Structured sub-fields extracted from a medication section."""

    presentations: list[str] = Field(default_factory=list)
    dosing_adult: str | None = None
    dosing_pediatric: str | None = None
    dosing_geriatric: str | None = None
    contraindications: list[str] = Field(default_factory=list)
    interactions: list[DrugInteraction] = Field(default_factory=list)
    adverse_effects: list[str] = Field(default_factory=list)
    pregnancy_lactation: str | None = None
    indications: list[str] = Field(default_factory=list)
    routes_of_administration: list[str] = Field(default_factory=list)
    pharmacokinetics: str | None = None


class MedicationCandidate(BaseModel):
    """A medication entry produced by the segmenter, before embedding.

    Attributes:
        generic_name: Normalized display name (canonical key).
        commercial_names: Brand names in document order.
        active_ingredient: Optional active ingredient.
        therapeutic_group: Optional therapeutic group.
        content: Denormalized text that will be embedded.
        metadata: Structured sub-fields.
    """

    generic_name: str
    commercial_names: list[str] = Field(default_factory=list)
    active_ingredient: str | None = None
    therapeutic_group: str | None = None
    content: str
    metadata: MedicationMetadata = Field(default_factory=MedicationMetadata)


# ============================================
# Stored Record
# ============================================


class MedicationRecord(MedicationCandidate):
    """Canonical stored medication, keyed by generic name."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    embedding: list[float] | None = None
    source: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_candidate(
        cls,
        candidate: MedicationCandidate,
        embedding: list[float] | None,
        source: str,
    ) -> "MedicationRecord":
        return cls(
            **candidate.model_dump(),
            embedding=embedding,
            source=source,
        )


# ============================================
# Query Results
# ============================================


class SearchResult(BaseModel):
    """A medication returned by lookup or semantic search."""

    id: uuid.UUID
    generic_name: str
    content: str
    metadata: MedicationMetadata
    similarity: float

    @classmethod
    def from_record(
        cls, record: MedicationRecord, similarity: float
    ) -> "SearchResult":
        return cls(
            id=record.id,
            generic_name=record.generic_name,
            content=record.content,
            metadata=record.metadata,
            similarity=similarity,
        )


class InteractionAlert(BaseModel):
    """An interacting pair found among the requested medications."""

    drug_a: str
    drug_b: str
    effect: str
    severity: str


class IngestionResult(BaseModel):
    """Tally returned by an ingestion batch."""

    processed: int = 0
    errors: int = 0


class MedicationSummary(BaseModel):
    """Listing row without content or embedding."""

    id: uuid.UUID
    generic_name: str
    commercial_names: list[str] = Field(default_factory=list)
    therapeutic_group: str | None = None
    metadata: MedicationMetadata = Field(default_factory=MedicationMetadata)


class MedicationPage(BaseModel):
    """One page of the medication listing."""

    items: list[MedicationSummary]
    page: int
    limit: int
    total: int
    total_pages: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.model_dump(mode="json") for item in self.items],
            "meta": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "total_pages": self.total_pages,
            },
        }
