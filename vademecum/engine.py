"""
Vademecum Engine

Single entry point over the ingestion and query paths. All configuration
is explicit (VademecumConfig); the engine holds no mutable state besides
the store it was given.
"""

import logging
import math
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from vademecum.config import VademecumConfig
from vademecum.db.postgres import create_db_engine
from vademecum.db.store import InMemoryMedicationStore, MedicationStore, PgMedicationStore
from vademecum.observability.metrics import record_ingestion, record_query
from vademecum.rag.context import ContextBuilder
from vademecum.rag.embedding import EmbeddingClient
from vademecum.rag.extractor import PDFTextExtractor
from vademecum.rag.ingestion import DEFAULT_SOURCE, IngestionPipeline
from vademecum.rag.interactions import InteractionChecker
from vademecum.rag.retriever import DEFAULT_SEARCH_LIMIT, RetrievalEngine
from vademecum.rag.schemas import (
    IngestionResult,
    InteractionAlert,
    MedicationPage,
    MedicationSummary,
    SearchResult,
)
from vademecum.rag.segmenter import SectionSegmenter
from vademecum.security.input_validation import InvalidInputError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 200


def build_store(config: VademecumConfig) -> MedicationStore:
    """Store backend selected by configuration."""
    if config.store_backend == "memory":
        return InMemoryMedicationStore()

    return PgMedicationStore(create_db_engine(config.database_url))


class VademecumEngine:
    """Medication knowledge ingestion and retrieval."""

    def __init__(
        self,
        config: VademecumConfig,
        store: MedicationStore,
        embedder: EmbeddingClient,
    ):
        self.config = config
        self.store = store
        self.embedder = embedder

        self.retriever = RetrievalEngine(
            store,
            embedder,
            similarity_threshold=config.similarity_threshold,
            min_query_length=config.min_query_length,
        )
        self.checker = InteractionChecker(
            self.retriever, default_severity=config.default_severity
        )
        self.context_builder = ContextBuilder(self.retriever, self.checker)
        self.pipeline = IngestionPipeline(
            store,
            embedder,
            extractor=PDFTextExtractor(),
            segmenter=SectionSegmenter(
                min_section_length=config.min_section_length,
                min_name_length=config.min_name_length,
            ),
        )

    @classmethod
    def from_config(cls, config: VademecumConfig | None = None) -> "VademecumEngine":
        config = config or VademecumConfig.from_env()
        return cls(config, build_store(config), EmbeddingClient.from_config(config))

    # ============================================
    # Ingestion
    # ============================================

    async def ingest_pdf(
        self, pdf_bytes: bytes, source: str = DEFAULT_SOURCE
    ) -> IngestionResult:
        result = await self.pipeline.ingest_pdf(pdf_bytes, source)
        record_ingestion(result.processed, result.errors)
        return result

    async def ingest_text(
        self, text: str, source: str = DEFAULT_SOURCE
    ) -> IngestionResult:
        result = await self.pipeline.ingest_text(text, source)
        record_ingestion(result.processed, result.errors)
        return result

    # ============================================
    # Queries
    # ============================================

    async def search(
        self, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> list[SearchResult]:
        return await self._timed("search", lambda: self.retriever.search(query, limit))

    async def get_medication(self, name: str) -> SearchResult | None:
        return await self._timed(
            "get_medication", lambda: self.retriever.get_medication(name)
        )

    async def check_interactions(self, medications: list[str]) -> list[InteractionAlert]:
        return await self._timed(
            "check_interactions", lambda: self.checker.check(medications)
        )

    async def build_context(self, medications: list[str]) -> str:
        return await self._timed(
            "build_context", lambda: self.context_builder.build(medications)
        )

    async def list_medications(
        self, page: int = 1, limit: int = DEFAULT_PAGE_LIMIT
    ) -> MedicationPage:
        """Paginated listing ordered by generic name."""
        if page < 1:
            raise InvalidInputError("page must be >= 1")
        if limit < 1 or limit > MAX_PAGE_LIMIT:
            raise InvalidInputError(f"limit must be between 1 and {MAX_PAGE_LIMIT}")

        records = await self.store.list_page((page - 1) * limit, limit)
        total = await self.store.count()
        return MedicationPage(
            items=[
                MedicationSummary(
                    id=r.id,
                    generic_name=r.generic_name,
                    commercial_names=r.commercial_names,
                    therapeutic_group=r.therapeutic_group,
                    metadata=r.metadata,
                )
                for r in records
            ],
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        )

    async def close(self) -> None:
        await self.embedder.close()
        await self.store.close()

    async def _timed(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        start = time.time()
        success = False
        try:
            result = await call()
            success = True
            return result
        except InvalidInputError:
            # Caller errors are not service failures
            success = True
            raise
        finally:
            record_query(operation, (time.time() - start) * 1000, success=success)
