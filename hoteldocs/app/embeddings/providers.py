"""Embedding providers - text to fixed-length unit vectors.

Two providers implement the same contract:
- SentenceTransformerEmbedder: pretrained sentence-embedding model, mean pooling
  over token embeddings, L2 normalisation
- HashingEmbedder: deterministic bag-of-words feature hashing, no model download
  (offline development and tests)
"""

import hashlib
import logging
import re
from typing import Any, Protocol

import numpy as np

from hoteldocs.app.errors import ModelUnavailableError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""

    name: str
    dimensions: int

    def load(self) -> None:
        """Initialise model resources. Must be idempotent."""
        ...

    def embed(self, text: str) -> np.ndarray:
        """Embed a single text into a unit-norm float32 vector."""
        ...


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    """Scale vector to unit length; zero vectors are returned unchanged."""
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        return vector.astype(np.float32)
    return (vector / norm).astype(np.float32)


def mean_pool(token_embeddings: np.ndarray, attention_mask: np.ndarray | None = None) -> np.ndarray:
    """Average token embeddings, counting only tokens the mask keeps.

    Args:
        token_embeddings: (tokens, dim) array
        attention_mask: optional (tokens,) array of 0/1

    Returns:
        (dim,) array
    """
    if attention_mask is None:
        return token_embeddings.mean(axis=0)
    mask = attention_mask.astype(np.float32)[:, None]
    summed = (token_embeddings * mask).sum(axis=0)
    count = max(float(mask.sum()), 1e-9)
    return summed / count


class SentenceTransformerEmbedder:
    """Sentence-embedding model loaded through sentence-transformers.

    The model is loaded once on first use (see EmbeddingService for the
    process-wide single-flight wrapper).
    """

    def __init__(self, model_name: str, dimensions: int = 384) -> None:
        self.name = model_name
        self.dimensions = dimensions
        self._model: Any = None

    def load(self) -> None:
        if self._model is not None:
            return

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ModelUnavailableError(
                "sentence-transformers is not installed", summary="Failed to load embedding model"
            ) from e

        try:
            logger.info("Loading embedding model: %s", self.name)
            self._model = SentenceTransformer(self.name)
        except Exception as e:
            raise ModelUnavailableError(
                f"Failed to load model '{self.name}': {e}",
                summary="Failed to load embedding model",
            ) from e

    def embed(self, text: str) -> np.ndarray:
        self.load()

        # Per-token vectors, already trimmed to the attention mask.
        token_embeddings = self._model.encode(
            text,
            output_value="token_embeddings",
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        if hasattr(token_embeddings, "cpu"):
            token_embeddings = token_embeddings.cpu().numpy()
        token_embeddings = np.asarray(token_embeddings, dtype=np.float32)

        pooled = mean_pool(token_embeddings)
        return l2_normalize(pooled)


class HashingEmbedder:
    """Deterministic bag-of-words embedder.

    Each lowercase alphanumeric token is hashed into one of `dimensions` buckets
    with a hash-derived sign. Texts sharing words have positive cosine
    similarity; disjoint vocabularies score ~0.
    """

    def __init__(self, dimensions: int = 384, name: str = "hashing-bow") -> None:
        self.name = name
        self.dimensions = dimensions

    def load(self) -> None:
        pass

    def embed(self, text: str) -> np.ndarray:
        vector = np.zeros(self.dimensions, dtype=np.float32)
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.sha256(token.encode()).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimensions
            sign = 1.0 if digest[4] % 2 == 0 else -1.0
            vector[bucket] += sign
        return l2_normalize(vector)


def create_provider(provider: str, model_name: str, dimensions: int) -> EmbeddingProvider:
    """Factory for the configured provider."""
    if provider == "sentence_transformers":
        return SentenceTransformerEmbedder(model_name, dimensions)
    if provider == "hashing":
        return HashingEmbedder(dimensions)
    raise ModelUnavailableError(
        f"Unknown embedding provider '{provider}'. Choose from: sentence_transformers, hashing"
    )
