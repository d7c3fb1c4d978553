"""Process-wide embedding service.

Wraps an EmbeddingProvider with:
- single-flight lazy model initialisation (first caller loads, concurrent
  callers await the same load)
- input validation
- inference off the event loop
- optional query-embedding cache (injected TTLCache); cache failures degrade
  to a miss
"""

import asyncio
import hashlib
import logging
import time
from collections.abc import Sequence
from typing import Any

import numpy as np
import redis

from hoteldocs.app.cache import TTLCache, create_cache
from hoteldocs.app.config import Settings, get_settings
from hoteldocs.app.embeddings.providers import EmbeddingProvider, create_provider
from hoteldocs.app.errors import InvalidInputError, ModelUnavailableError
from hoteldocs.app.utils.metrics import embedding_latency_ms

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Shared, read-only-after-load embedding generator."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        cache: TTLCache | None = None,
        cache_ttl_seconds: int = 0,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self.load_count = 0

    @property
    def model_name(self) -> str:
        return self._provider.name

    @property
    def dimensions(self) -> int:
        return self._provider.dimensions

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def ensure_loaded(self) -> None:
        """Load the model once per process.

        Raises:
            ModelUnavailableError: If the model cannot be loaded
        """
        if self._loaded:
            return

        async with self._load_lock:
            # Double-check under lock
            if self._loaded:
                return

            start = time.monotonic()
            try:
                await asyncio.to_thread(self._provider.load)
            except ModelUnavailableError:
                raise
            except Exception as e:
                raise ModelUnavailableError(f"Embedding model failed to load: {e}") from e

            self.load_count += 1
            self._loaded = True
            logger.info(
                f"[embeddings] model={self.model_name} loaded in "
                f"{(time.monotonic() - start) * 1000:.0f}ms"
            )

    async def embed(self, text: str, *, use_cache: bool = True) -> np.ndarray:
        """Embed one text into a unit-norm vector of length `dimensions`.

        Args:
            text: Text to embed
            use_cache: Read and populate the query-embedding cache. Ingestion
                passes False so document chunks never fill the cache.

        Raises:
            InvalidInputError: If text is missing, not a string or blank
            ModelUnavailableError: If the model cannot be loaded
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError(
                "Text is required and must be a string",
                summary="Text is required and must be a string",
            )

        await self.ensure_loaded()

        cache_key = self._cache_key(text) if use_cache and self._cache_enabled else None
        if cache_key is not None:
            cached = await self._cache_get(cache_key)
            if cached is not None:
                return np.asarray(cached, dtype=np.float32)

        start = time.monotonic()
        try:
            vector = await asyncio.to_thread(self._provider.embed, text)
        except ModelUnavailableError:
            raise
        except Exception as e:
            raise ModelUnavailableError(f"Embedding generation failed: {e}") from e
        embedding_latency_ms.observe((time.monotonic() - start) * 1000)

        if len(vector) != self.dimensions:
            raise ModelUnavailableError(
                f"Embedding dimension mismatch: expected {self.dimensions}, got {len(vector)}"
            )

        if cache_key is not None:
            await self._cache_set(cache_key, [float(v) for v in vector])

        return vector

    async def embed_many(self, texts: Sequence[str]) -> list[np.ndarray]:
        """Embed texts sequentially, preserving order. Bypasses the cache."""
        return [await self.embed(text, use_cache=False) for text in texts]

    @property
    def _cache_enabled(self) -> bool:
        return self._cache is not None and self._cache_ttl_seconds > 0

    async def _cache_get(self, key: str) -> Any | None:
        assert self._cache is not None
        try:
            return await asyncio.to_thread(self._cache.get, key)
        except redis.RedisError as e:
            logger.warning(f"[embeddings] cache read failed, computing embedding: {e}")
            return None

    async def _cache_set(self, key: str, value: list[float]) -> None:
        assert self._cache is not None
        try:
            await asyncio.to_thread(self._cache.set, key, value, self._cache_ttl_seconds)
        except redis.RedisError as e:
            logger.warning(f"[embeddings] cache write failed: {e}")

    def _cache_key(self, text: str) -> str:
        digest = hashlib.sha256(text.encode()).hexdigest()
        return f"embedding:{self.model_name}:{digest}"


_service: EmbeddingService | None = None


def build_embedding_service(settings: Settings) -> EmbeddingService:
    """Create an EmbeddingService from settings."""
    provider = create_provider(
        settings.embedding_provider,
        settings.embedding_model_name,
        settings.embedding_dimensions,
    )
    return EmbeddingService(
        provider,
        cache=create_cache(settings.redis_url),
        cache_ttl_seconds=settings.query_embedding_cache_ttl_seconds,
    )


def get_embedding_service() -> EmbeddingService:
    """Get the process-wide embedding service (created on first use)."""
    global _service
    if _service is None:
        _service = build_embedding_service(get_settings())
    return _service


def reset_embedding_service() -> None:
    """Drop the cached service (useful for testing)."""
    global _service
    _service = None
