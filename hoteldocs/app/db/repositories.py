"""Document store protocol and shared scoring helpers."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

import numpy as np

from hoteldocs.app.errors import InvalidInputError
from hoteldocs.app.models.docs import Document, DocumentChunk
from hoteldocs.app.models.search import ChunkResult, DocumentResult


NO_DESCRIPTION = "No description available"


@dataclass
class NewChunk:
    """Chunk to persist for a document."""

    chunk_index: int
    content: str
    chunk_type: str
    embedding: np.ndarray


@dataclass
class ScoredCandidate:
    """Intermediate row used while ranking."""

    similarity: float
    created_at: datetime
    chunk_index: int
    row: object


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity in [-1, 1]; 0.0 when either vector is zero."""
    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom == 0.0:
        return 0.0
    score = float(np.dot(a, b) / denom)
    return max(-1.0, min(1.0, score))


def rank_candidates(
    candidates: Sequence[ScoredCandidate],
    *,
    match_threshold: float,
    limit: int,
) -> list[ScoredCandidate]:
    """Keep candidates above the threshold, best first, capped at limit.

    Ordering: similarity descending, then document created_at descending
    (newest first), then chunk_index ascending.
    """
    kept = [c for c in candidates if c.similarity > match_threshold]
    kept.sort(key=lambda c: (-c.similarity, -c.created_at.timestamp(), c.chunk_index))
    return kept[:limit]


def document_excerpt(document: Document) -> str:
    """Content shown for document-level results."""
    return document.description or NO_DESCRIPTION


def to_document_result(document: Document, similarity: float | None) -> DocumentResult:
    """Project a document row into a DocumentResult."""
    return DocumentResult(
        document_id=document.id,
        hotel_id=document.hotel_id,
        title=document.title,
        file_type=document.file_type,
        content=document_excerpt(document),
        similarity=similarity,
        created_at=document.created_at,
    )


class DocumentStore(Protocol):
    """Hotel-scoped document and vector store.

    Every method filters on hotel_id. Similarity searches only consider
    documents that are processed and not archived.
    """

    async def search_chunks(
        self,
        embedding: np.ndarray,
        hotel_id: UUID,
        *,
        match_threshold: float,
        limit: int,
    ) -> list[ChunkResult]:
        """Rank chunks of the hotel's documents by similarity."""
        ...

    async def search_documents(
        self,
        embedding: np.ndarray,
        hotel_id: UUID,
        *,
        match_threshold: float,
        limit: int,
        document_id: UUID | None = None,
    ) -> list[DocumentResult]:
        """Rank whole documents, optionally restricted to one document."""
        ...

    async def search_documents_by_ids(
        self,
        embedding: np.ndarray,
        hotel_id: UUID,
        document_ids: Sequence[UUID],
        *,
        match_threshold: float,
        limit: int,
    ) -> list[DocumentResult]:
        """Rank whole documents restricted to an explicit id set."""
        ...

    async def list_documents(
        self,
        hotel_id: UUID,
        *,
        limit: int,
        offset: int = 0,
        search: str | None = None,
        file_type: str | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        processed_only: bool = False,
    ) -> tuple[list[Document], int]:
        """List non-archived documents; returns (page, total)."""
        ...

    async def create_document(self, document: Document) -> Document:
        """Insert a document row."""
        ...

    async def get_document(self, document_id: UUID, hotel_id: UUID) -> Document | None:
        """Get a non-archived document of the hotel."""
        ...

    async def list_chunks(self, document_id: UUID, hotel_id: UUID) -> list[DocumentChunk]:
        """List a document's chunks in order."""
        ...

    async def replace_chunks(
        self, document_id: UUID, hotel_id: UUID, chunks: Sequence[NewChunk]
    ) -> int:
        """Replace all chunks of a document; returns the number stored."""
        ...

    async def mark_processed(
        self, document_id: UUID, hotel_id: UUID, embedding: np.ndarray | None
    ) -> None:
        """Store the document vector and flag the document searchable."""
        ...

    async def archive_document(self, document_id: UUID, hotel_id: UUID) -> bool:
        """Soft-delete a document and drop its chunks."""
        ...


SORTABLE_FIELDS = ("created_at", "title", "file_type")


def validate_sort_field(sort_by: str) -> str:
    """Return sort_by if listing supports it."""
    if sort_by not in SORTABLE_FIELDS:
        raise InvalidInputError(f"Unsupported sort field '{sort_by}'")
    return sort_by
