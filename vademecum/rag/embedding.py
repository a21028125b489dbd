import asyncio
import logging
from functools import lru_cache

import httpx

from vademecum.config import (
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_OLLAMA_URL,
    EMBEDDING_MAX_CHARS,
    VademecumConfig,
)
from vademecum.rag.cache import EmbeddingCache

logger = logging.getLogger(__name__)

SENTENCE_TRANSFORMERS = "sentence-transformers"
OLLAMA = "ollama"


class EmbeddingError(RuntimeError):
    """Raised when the embedding service cannot produce a vector."""


@lru_cache(maxsize=2)
def _load_st_model(model_name: str):
    """Load sentence-transformers model once and cache it."""
    from sentence_transformers import SentenceTransformer

    logger.info("Loading sentence-transformers model: %s", model_name)
    model = SentenceTransformer(model_name)
    logger.info(
        "Model loaded, dimension: %d", model.get_sentence_embedding_dimension()
    )
    return model


def _encode_sync(model, text: str) -> list[float]:
    """Run model.encode synchronously; called via to_thread."""
    vector = model.encode([text], show_progress_bar=False)[0]
    return [float(v) for v in vector]


def truncate(text: str, max_chars: int = EMBEDDING_MAX_CHARS) -> str:
    """Keep the prefix of text within the model's input cap."""
    return text[:max_chars]


class EmbeddingClient:
    """Text-in / vector-out wrapper around the embedding model.

    Backends:
        sentence-transformers: local model, encode runs in a worker thread.
        ollama: HTTP call to an Ollama server's /api/embeddings endpoint.

    Input longer than max_chars is silently truncated (prefix kept). Any
    backend failure raises EmbeddingError; retries are the caller's concern.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        backend: str = SENTENCE_TRANSFORMERS,
        ollama_url: str = DEFAULT_OLLAMA_URL,
        max_chars: int = EMBEDDING_MAX_CHARS,
        timeout: float = 60.0,
        cache: EmbeddingCache | None = None,
        dimension: int | None = None,
    ):
        if backend not in (SENTENCE_TRANSFORMERS, OLLAMA):
            raise ValueError(f"Unknown embedding backend: {backend}")
        self.model_name = model_name
        self.backend = backend
        self.ollama_url = ollama_url.rstrip("/")
        self.max_chars = max_chars
        self.timeout = timeout
        self.cache = cache
        self.dimension = dimension

    @classmethod
    def from_config(cls, config: VademecumConfig) -> "EmbeddingClient":
        cache = None
        if config.embedding_cache_enabled:
            cache = EmbeddingCache(
                model_name=config.embedding_model,
                redis_url=config.redis_url,
                ttl_seconds=config.embedding_cache_ttl_seconds,
            )
        return cls(
            model_name=config.embedding_model,
            backend=config.embedding_backend,
            ollama_url=config.ollama_url,
            max_chars=config.embedding_max_chars,
            timeout=config.embedding_timeout_seconds,
            cache=cache,
            dimension=config.embedding_dimension,
        )

    async def embed(self, text: str, cache: bool = True) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed; truncated to max_chars.
            cache: If False, bypass the TTL cache. Ingestion always passes
                   False so stored vectors come from the live model.

        Raises:
            EmbeddingError: If the backend fails, returns no vector, or returns
                one whose length differs from the configured dimension.
        """
        text = truncate(text, self.max_chars)
        use_cache = cache and self.cache is not None

        if use_cache:
            cached = await self.cache.get(text)
            if cached is not None:
                return cached

        try:
            if self.backend == OLLAMA:
                vector = await self._embed_ollama(text)
            else:
                model = _load_st_model(self.model_name)
                vector = await asyncio.to_thread(_encode_sync, model, text)
        except EmbeddingError:
            raise
        except Exception as e:
            logger.error("Embedding call failed (%s/%s): %s", self.backend, self.model_name, e)
            raise EmbeddingError(f"Embedding failed: {e}") from e

        if not vector:
            raise EmbeddingError("Embedding service returned an empty vector")
        if self.dimension is not None and len(vector) != self.dimension:
            raise EmbeddingError(
                f"Model {self.model_name} returned {len(vector)} dimensions, "
                f"expected {self.dimension}"
            )

        if use_cache:
            await self.cache.set(text, vector)
        return vector

    async def _embed_ollama(self, text: str) -> list[float]:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
            response = await client.post(
                f"{self.ollama_url}/api/embeddings",
                json={"model": self.model_name, "prompt": text},
            )
            response.raise_for_status()
            data = response.json()
        embedding = data.get("embedding")
        if not isinstance(embedding, list):
            raise EmbeddingError("Ollama response has no 'embedding' field")
        return [float(v) for v in embedding]

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.close()
