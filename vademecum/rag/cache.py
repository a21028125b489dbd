"""
Vademecum Embedding Cache

Redis cache for query embeddings with a bounded TTL.

Keys are scoped by embedding model name so a model change never serves
vectors from the previous embedding space. Entries always expire; the cache
is never a substitute for re-embedding on ingestion.
"""

import hashlib
import json
import logging

from redis.asyncio import Redis

from vademecum.config import DEFAULT_REDIS_URL, EMBEDDING_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

# Cache key prefix
CACHE_KEY_PREFIX = "vademecum:emb:"


class EmbeddingCache:
    """Embedding cache backed by Redis.

    Errors are treated as cache misses; the embedding service is always the
    source of truth.

    Attributes:
        model_name: Embedding model the cached vectors belong to.
        ttl_seconds: Time-to-live for cached embeddings in seconds.
    """

    def __init__(
        self,
        model_name: str,
        redis_url: str = DEFAULT_REDIS_URL,
        ttl_seconds: int = EMBEDDING_CACHE_TTL_SECONDS,
    ) -> None:
        self.model_name = model_name
        self.ttl_seconds = ttl_seconds
        self._redis_url = redis_url
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        """Lazily initialize the Redis connection."""
        if self._redis is None:
            self._redis = Redis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    def make_key(self, text: str) -> str:
        """Cache key for a text under the current model."""
        text_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"{CACHE_KEY_PREFIX}{self.model_name}:{text_hash}"

    async def get(self, text: str) -> list[float] | None:
        """Cached embedding for text, or None on miss or error."""
        try:
            cached = await self._get_redis().get(self.make_key(text))
            if cached:
                return json.loads(cached)
            return None
        except Exception as e:
            logger.debug("Embedding cache read failed: %s", e)
            return None

    async def set(self, text: str, embedding: list[float]) -> bool:
        """Store an embedding with the configured TTL."""
        try:
            await self._get_redis().setex(
                self.make_key(text), self.ttl_seconds, json.dumps(embedding)
            )
            return True
        except Exception as e:
            logger.debug("Embedding cache write failed: %s", e)
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
