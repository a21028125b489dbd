"""
Medication Store

Persistence for MedicationRecord plus exact and nearest-neighbour lookup.

Implementations:
- PgMedicationStore: PostgreSQL + pgvector (cosine distance, HNSW index)
- InMemoryMedicationStore: numpy cosine similarity, for development and tests
"""

import asyncio
import logging
from typing import Protocol

import numpy as np
from sqlalchemy import bindparam, case, func, or_, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from vademecum.db.models import Medication
from vademecum.db.postgres import create_session_maker, session_scope
from vademecum.rag.schemas import MedicationRecord

logger = logging.getLogger(__name__)

# Column key of the JSONB "metadata" column (mapped to medication_metadata)
_METADATA_KEY = Medication.medication_metadata.property.columns[0].key


def name_key(name: str) -> str:
    """Case-insensitive uniqueness key for a generic or commercial name."""
    return name.strip().lower()


class MedicationStore(Protocol):
    """Storage capability the engine depends on."""

    async def upsert(self, record: MedicationRecord) -> MedicationRecord: ...

    async def find_exact(self, name: str) -> MedicationRecord | None: ...

    async def find_nearest(
        self, query_vector: list[float], k: int
    ) -> list[tuple[MedicationRecord, float]]: ...

    async def count(self) -> int: ...

    async def list_page(self, offset: int, limit: int) -> list[MedicationRecord]: ...

    async def close(self) -> None: ...


# ============================================
# PostgreSQL / pgvector
# ============================================


class PgMedicationStore:
    """pgvector-backed store. Each upsert is a single atomic statement."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
    ):
        self._engine = engine
        self._session_maker = session_maker or create_session_maker(engine)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def upsert(self, record: MedicationRecord) -> MedicationRecord:
        """Insert, or overwrite the row with the same lower(generic_name)."""
        table = Medication.__table__
        stmt = pg_insert(table).values(
            {
                "id": record.id,
                "generic_name": record.generic_name,
                "commercial_names": record.commercial_names,
                "active_ingredient": record.active_ingredient,
                "therapeutic_group": record.therapeutic_group,
                "content": record.content,
                _METADATA_KEY: record.metadata.model_dump(mode="json"),
                "embedding": record.embedding,
                "source": record.source,
                "created_at": record.created_at,
                "updated_at": record.updated_at,
            }
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[func.lower(table.c.generic_name)],
            set_={
                "content": stmt.excluded.content,
                _METADATA_KEY: stmt.excluded[_METADATA_KEY],
                "embedding": stmt.excluded.embedding,
                "source": stmt.excluded.source,
                "updated_at": func.now(),
            },
        ).returning(table.c.id, table.c.created_at, table.c.updated_at)

        async with session_scope(self._session_maker) as session:
            row = (await session.execute(stmt)).one()

        return record.model_copy(
            update={"id": row.id, "created_at": row.created_at, "updated_at": row.updated_at}
        )

    async def find_exact(self, name: str) -> MedicationRecord | None:
        """Case-insensitive match on generic name or any commercial name."""
        # Lowercase both sides in SQL; Python and Postgres lower() differ under the C locale
        lookup = name.strip()
        generic_match = func.lower(Medication.generic_name) == func.lower(
            bindparam("generic_name_key", lookup)
        )
        commercial_match = text(
            "EXISTS (SELECT 1 FROM unnest(medications.commercial_names) AS cn "
            "WHERE lower(cn) = lower(:name_key))"
        ).bindparams(name_key=lookup)

        stmt = (
            select(Medication)
            .where(or_(generic_match, commercial_match))
            .order_by(case((generic_match, 0), else_=1), Medication.generic_name)
            .limit(1)
        )
        async with session_scope(self._session_maker) as session:
            medication = (await session.execute(stmt)).scalars().first()
            return medication.to_record() if medication else None

    async def find_nearest(
        self, query_vector: list[float], k: int
    ) -> list[tuple[MedicationRecord, float]]:
        """k nearest records by cosine distance, paired with 1 - distance."""
        distance = Medication.embedding.cosine_distance(query_vector).label("distance")
        stmt = (
            select(Medication, distance)
            .where(Medication.embedding.is_not(None))
            .order_by(distance)
            .limit(k)
        )
        async with session_scope(self._session_maker) as session:
            rows = (await session.execute(stmt)).all()
            return [
                (medication.to_record(), 1.0 - float(dist))
                for medication, dist in rows
            ]

    async def count(self) -> int:
        async with session_scope(self._session_maker) as session:
            result = await session.execute(select(func.count()).select_from(Medication))
            return int(result.scalar_one())

    async def list_page(self, offset: int, limit: int) -> list[MedicationRecord]:
        stmt = (
            select(Medication)
            .order_by(Medication.generic_name)
            .offset(offset)
            .limit(limit)
        )
        async with session_scope(self._session_maker) as session:
            medications = (await session.execute(stmt)).scalars().all()
            return [m.to_record() for m in medications]

    async def close(self) -> None:
        await self._engine.dispose()


# ============================================
# In-memory
# ============================================


class InMemoryMedicationStore:
    """Process-local store with the same semantics as PgMedicationStore."""

    def __init__(self) -> None:
        self._records: dict[str, MedicationRecord] = {}
        self._lock = asyncio.Lock()

    async def upsert(self, record: MedicationRecord) -> MedicationRecord:
        key = name_key(record.generic_name)
        async with self._lock:
            existing = self._records.get(key)
            if existing is None:
                stored = record.model_copy(deep=True)
            else:
                stored = existing.model_copy(
                    update={
                        "content": record.content,
                        "metadata": record.metadata.model_copy(deep=True),
                        "embedding": list(record.embedding) if record.embedding else None,
                        "source": record.source,
                        "updated_at": record.updated_at,
                    }
                )
            self._records[key] = stored
            return stored.model_copy(deep=True)

    async def find_exact(self, name: str) -> MedicationRecord | None:
        key = name_key(name)
        record = self._records.get(key)
        if record is None:
            record = next(
                (
                    r
                    for _, r in sorted(self._records.items())
                    if key in {name_key(n) for n in r.commercial_names}
                ),
                None,
            )
        return record.model_copy(deep=True) if record else None

    async def find_nearest(
        self, query_vector: list[float], k: int
    ) -> list[tuple[MedicationRecord, float]]:
        query = np.asarray(query_vector, dtype=float)
        query_norm = np.linalg.norm(query)
        if k <= 0 or query_norm == 0:
            return []

        scored: list[tuple[float, MedicationRecord]] = []
        for record in self._records.values():
            if not record.embedding:
                continue
            vector = np.asarray(record.embedding, dtype=float)
            norm = np.linalg.norm(vector)
            if norm == 0 or vector.shape != query.shape:
                continue
            similarity = float(np.dot(query, vector) / (query_norm * norm))
            scored.append((similarity, record))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [(r.model_copy(deep=True), s) for s, r in scored[:k]]

    async def count(self) -> int:
        return len(self._records)

    async def list_page(self, offset: int, limit: int) -> list[MedicationRecord]:
        ordered = sorted(self._records.values(), key=lambda r: r.generic_name)
        return [r.model_copy(deep=True) for r in ordered[offset : offset + limit]]

    async def close(self) -> None:
        return None
