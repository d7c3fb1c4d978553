"""In-memory implementation of the document store."""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from hoteldocs.app.db.repositories import (
    NewChunk,
    ScoredCandidate,
    cosine_similarity,
    rank_candidates,
    to_document_result,
    validate_sort_field,
)
from hoteldocs.app.models.docs import Document, DocumentChunk
from hoteldocs.app.models.search import ChunkResult, DocumentResult


@dataclass
class _StoredChunk:
    chunk: DocumentChunk
    embedding: np.ndarray


@dataclass
class _StoredDocument:
    document: Document
    embedding: np.ndarray | None = None
    chunks: list[_StoredChunk] = field(default_factory=list)


class InMemoryDocumentStore:
    """In-memory implementation of DocumentStore.

    Similarity is cosine similarity computed with numpy. Insertion order is
    kept, so equal-score ties resolve the same way on every call.
    """

    def __init__(self) -> None:
        self._documents: dict[uuid.UUID, _StoredDocument] = {}
        self.calls: list[str] = []

    def _searchable(self, hotel_id: uuid.UUID) -> list[_StoredDocument]:
        return [
            stored
            for stored in self._documents.values()
            if stored.document.hotel_id == hotel_id
            and stored.document.processed
            and not stored.document.archived
        ]

    async def search_chunks(
        self,
        embedding: np.ndarray,
        hotel_id: uuid.UUID,
        *,
        match_threshold: float,
        limit: int,
    ) -> list[ChunkResult]:
        """Rank chunks by cosine similarity."""
        self.calls.append("search_chunks")

        candidates: list[ScoredCandidate] = []
        for stored in self._searchable(hotel_id):
            for stored_chunk in stored.chunks:
                candidates.append(
                    ScoredCandidate(
                        similarity=cosine_similarity(embedding, stored_chunk.embedding),
                        created_at=stored.document.created_at,
                        chunk_index=stored_chunk.chunk.chunk_index,
                        row=(stored.document, stored_chunk.chunk),
                    )
                )

        results: list[ChunkResult] = []
        for candidate in rank_candidates(candidates, match_threshold=match_threshold, limit=limit):
            document, chunk = candidate.row  # type: ignore[misc]
            results.append(
                ChunkResult(
                    chunk_id=chunk.id,
                    document_id=document.id,
                    hotel_id=document.hotel_id,
                    title=document.title,
                    file_type=document.file_type,
                    chunk_index=chunk.chunk_index,
                    chunk_type=chunk.chunk_type,
                    content=chunk.content,
                    similarity=candidate.similarity,
                )
            )
        return results

    async def search_documents(
        self,
        embedding: np.ndarray,
        hotel_id: uuid.UUID,
        *,
        match_threshold: float,
        limit: int,
        document_id: uuid.UUID | None = None,
    ) -> list[DocumentResult]:
        """Rank whole documents, optionally restricted to one document."""
        self.calls.append("search_documents")
        allowed = {document_id} if document_id is not None else None
        return self._rank_documents(embedding, hotel_id, allowed, match_threshold, limit)

    async def search_documents_by_ids(
        self,
        embedding: np.ndarray,
        hotel_id: uuid.UUID,
        document_ids: Sequence[uuid.UUID],
        *,
        match_threshold: float,
        limit: int,
    ) -> list[DocumentResult]:
        """Rank whole documents restricted to document_ids."""
        self.calls.append("search_documents_by_ids")
        return self._rank_documents(
            embedding, hotel_id, set(document_ids), match_threshold, limit
        )

    def _rank_documents(
        self,
        embedding: np.ndarray,
        hotel_id: uuid.UUID,
        allowed: set[uuid.UUID] | None,
        match_threshold: float,
        limit: int,
    ) -> list[DocumentResult]:
        candidates = [
            ScoredCandidate(
                similarity=cosine_similarity(embedding, stored.embedding),
                created_at=stored.document.created_at,
                chunk_index=0,
                row=stored.document,
            )
            for stored in self._searchable(hotel_id)
            if stored.embedding is not None
            and (allowed is None or stored.document.id in allowed)
        ]
        ranked = rank_candidates(candidates, match_threshold=match_threshold, limit=limit)
        return [to_document_result(c.row, c.similarity) for c in ranked]  # type: ignore[arg-type]

    async def list_documents(
        self,
        hotel_id: uuid.UUID,
        *,
        limit: int,
        offset: int = 0,
        search: str | None = None,
        file_type: str | None = None,
        sort_by: str = "created_at",
        descending: bool = True,
        processed_only: bool = False,
    ) -> tuple[list[Document], int]:
        """List non-archived documents of the hotel."""
        self.calls.append("list_documents")
        sort_by = validate_sort_field(sort_by)

        documents = [
            stored.document
            for stored in self._documents.values()
            if stored.document.hotel_id == hotel_id and not stored.document.archived
        ]

        if processed_only:
            documents = [d for d in documents if d.processed]
        if file_type:
            documents = [d for d in documents if d.file_type == file_type]
        if search:
            needle = search.lower()
            documents = [
                d
                for d in documents
                if needle in d.title.lower() or needle in (d.description or "").lower()
            ]

        documents.sort(key=lambda d: getattr(d, sort_by), reverse=descending)
        return documents[offset : offset + limit], len(documents)

    async def create_document(self, document: Document) -> Document:
        """Insert a document row."""
        self._documents[document.id] = _StoredDocument(document=document)
        return document

    async def get_document(self, document_id: uuid.UUID, hotel_id: uuid.UUID) -> Document | None:
        """Get document by ID."""
        stored = self._documents.get(document_id)

        if stored is None:
            return None

        # Enforce hotel scope
        if stored.document.hotel_id != hotel_id or stored.document.archived:
            return None

        return stored.document

    async def list_chunks(
        self, document_id: uuid.UUID, hotel_id: uuid.UUID
    ) -> list[DocumentChunk]:
        """List chunks in order."""
        stored = self._documents.get(document_id)
        if stored is None or stored.document.hotel_id != hotel_id:
            return []
        return sorted((c.chunk for c in stored.chunks), key=lambda c: c.chunk_index)

    async def replace_chunks(
        self, document_id: uuid.UUID, hotel_id: uuid.UUID, chunks: Sequence[NewChunk]
    ) -> int:
        """Replace a document's chunks."""
        stored = self._documents.get(document_id)
        if stored is None or stored.document.hotel_id != hotel_id:
            return 0

        stored.chunks = [
            _StoredChunk(
                chunk=DocumentChunk(
                    id=uuid.uuid4(),
                    document_id=document_id,
                    hotel_id=hotel_id,
                    chunk_index=new_chunk.chunk_index,
                    content=new_chunk.content,
                    chunk_type=new_chunk.chunk_type,
                ),
                embedding=np.asarray(new_chunk.embedding, dtype=np.float32),
            )
            for new_chunk in chunks
        ]
        return len(stored.chunks)

    async def mark_processed(
        self, document_id: uuid.UUID, hotel_id: uuid.UUID, embedding: np.ndarray | None
    ) -> None:
        """Flag the document searchable."""
        stored = self._documents.get(document_id)
        if stored is None or stored.document.hotel_id != hotel_id:
            return

        stored.embedding = None if embedding is None else np.asarray(embedding, dtype=np.float32)
        stored.document = stored.document.model_copy(update={"processed": True})

    async def archive_document(self, document_id: uuid.UUID, hotel_id: uuid.UUID) -> bool:
        """Soft-delete a document."""
        stored = self._documents.get(document_id)
        if stored is None or stored.document.hotel_id != hotel_id or stored.document.archived:
            return False

        stored.document = stored.document.model_copy(update={"archived": True})
        stored.chunks = []
        return True
