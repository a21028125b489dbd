"""
Retrieval Engine for Vademecum

Exact lookup by generic or commercial name, with fallback to pgvector
nearest-neighbour search. Semantic matches at or below the similarity
floor are never surfaced.
"""

import logging
from typing import TYPE_CHECKING

from vademecum.config import MIN_QUERY_LENGTH, SIMILARITY_THRESHOLD
from vademecum.rag.embedding import EmbeddingClient, EmbeddingError
from vademecum.rag.schemas import SearchResult
from vademecum.security.input_validation import (
    InvalidInputError,
    sanitize,
    validate_limit,
    validate_query,
)

if TYPE_CHECKING:
    from vademecum.db.store import MedicationStore

logger = logging.getLogger(__name__)

EXACT_MATCH_SIMILARITY = 1.0
DEFAULT_SEARCH_LIMIT = 5


class RetrievalError(RuntimeError):
    """The query path could not complete (embedding service failure)."""


class RetrievalEngine:
    """Exact-then-semantic medication lookup.

    Attributes:
        similarity_threshold: Results with similarity <= this are dropped.
        min_query_length: Shorter search queries are rejected up front.
    """

    def __init__(
        self,
        store: "MedicationStore",
        embedder: EmbeddingClient,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        min_query_length: int = MIN_QUERY_LENGTH,
    ):
        self._store = store
        self._embedder = embedder
        self.similarity_threshold = similarity_threshold
        self.min_query_length = min_query_length

    async def get_medication(self, name: str) -> SearchResult | None:
        """Resolve a generic or commercial name to a single medication.

        An exact match always wins; otherwise the nearest semantic match is
        returned if it clears the similarity floor. None means not found.

        Raises:
            InvalidInputError: If name is blank.
            RetrievalError: If the semantic fallback cannot embed the name.
        """
        name = sanitize(name or "")
        if not name:
            raise InvalidInputError("Medication name is required")

        exact = await self._store.find_exact(name)
        if exact is not None:
            return SearchResult.from_record(exact, EXACT_MATCH_SIMILARITY)

        results = await self._semantic_search(name, 1)
        if not results:
            logger.info("Medication not found: %s", name)
            return None
        return results[0]

    async def search(
        self, query: str, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> list[SearchResult]:
        """Semantic search over medication content.

        Returns at most `limit` results, all with similarity above the
        floor; fewer when not enough qualify.

        Raises:
            InvalidInputError: If the query is too short or limit out of range.
            RetrievalError: If the embedding service fails.
        """
        query = validate_query(query, self.min_query_length)
        limit = validate_limit(limit)
        return await self._semantic_search(query, limit)

    async def _semantic_search(self, query: str, limit: int) -> list[SearchResult]:
        try:
            query_vector = await self._embedder.embed(query)
        except EmbeddingError as e:
            logger.error("Semantic search failed for %r: %s", query[:100], e)
            raise RetrievalError(f"Semantic search unavailable: {e}") from e

        nearest = await self._store.find_nearest(query_vector, limit)
        results = [
            SearchResult.from_record(record, similarity)
            for record, similarity in nearest
            if similarity > self.similarity_threshold
        ]
        logger.debug(
            "Semantic search %r: %d/%d above %.2f",
            query[:100],
            len(results),
            len(nearest),
            self.similarity_threshold,
        )
        return results
