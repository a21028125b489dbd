"""
Vademecum Ingestion Pipeline

PDF → text → medication sections → embedding → store upsert.

Runs one section at a time. A failing section (embedding or store error)
is logged and counted; the batch always completes with a tally.
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from vademecum.rag.embedding import EmbeddingClient
from vademecum.rag.extractor import PDFTextExtractor
from vademecum.rag.schemas import IngestionResult, MedicationRecord
from vademecum.rag.segmenter import SectionSegmenter

if TYPE_CHECKING:
    from vademecum.db.store import MedicationStore

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "PDF Upload"


class IngestionPipeline:
    """Sequential ingestion of drug-reference documents."""

    def __init__(
        self,
        store: "MedicationStore",
        embedder: EmbeddingClient,
        extractor: PDFTextExtractor | None = None,
        segmenter: SectionSegmenter | None = None,
    ):
        self._store = store
        self._embedder = embedder
        self._extractor = extractor or PDFTextExtractor()
        self._segmenter = segmenter or SectionSegmenter()

    async def ingest_pdf(
        self, pdf_bytes: bytes, source: str = DEFAULT_SOURCE
    ) -> IngestionResult:
        """Ingest a PDF payload. Never raises for document problems."""
        logger.info(
            "Starting PDF ingestion (%d bytes, source=%s)", len(pdf_bytes or b""), source
        )
        # CPU-bound; runs off the event loop
        text = await asyncio.to_thread(self._extractor.extract, pdf_bytes)
        if not text.strip():
            logger.warning("PDF yielded no text; nothing ingested (source=%s)", source)
            return IngestionResult(processed=0, errors=0)
        return await self.ingest_text(text, source)

    async def ingest_text(
        self, text: str, source: str = DEFAULT_SOURCE
    ) -> IngestionResult:
        """Ingest already-extracted document text."""
        start = time.time()
        candidates = self._segmenter.segment(text)

        processed = 0
        errors = 0
        for candidate in candidates:
            try:
                embedding = await self._embedder.embed(candidate.content, cache=False)
                record = MedicationRecord.from_candidate(candidate, embedding, source)
                await self._store.upsert(record)
                processed += 1
                logger.info("Processed: %s", candidate.generic_name)
            except Exception as e:
                errors += 1
                logger.error("Error processing %s: %s", candidate.generic_name, e)

        logger.info(
            "Ingestion complete: %d processed, %d errors in %.2fs",
            processed,
            errors,
            time.time() - start,
        )
        return IngestionResult(processed=processed, errors=errors)
