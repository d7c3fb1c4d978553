"""SQL implementation of the document store.

On PostgreSQL, similarity is computed in the database with pgvector's cosine
distance operator. Other dialects (SQLite in tests) load the hotel-scoped
candidate rows and score them with numpy, using the same ranking rules.
"""

import uuid
from collections.abc import Sequence
from typing import Any

import numpy as np
from sqlalchemy import Result, Select, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hoteldocs.app.db.models import Document as DocumentDB
from hoteldocs.app.db.models import DocumentChunk as DocumentChunkDB
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


def _to_document(row: DocumentDB) -> Document:
    return Document(
        id=row.id,
        hotel_id=row.hotel_id,
        title=row.title,
        description=row.description,
        file_type=row.file_type,
        file_url=row.file_url,
        processed=row.processed,
        archived=row.archived,
        uploaded_by=row.uploaded_by,
        created_at=row.created_at,
    )


def _to_chunk_result(chunk: DocumentChunkDB, document: DocumentDB, similarity: float) -> ChunkResult:
    return ChunkResult(
        chunk_id=chunk.id,
        document_id=document.id,
        hotel_id=document.hotel_id,
        title=document.title,
        file_type=document.file_type,
        chunk_index=chunk.chunk_index,
        chunk_type=chunk.chunk_type,
        content=chunk.content,
        similarity=max(-1.0, min(1.0, float(similarity))),
    )


def _as_vector(embedding: np.ndarray) -> list[float]:
    return [float(v) for v in embedding]


class SqlDocumentStore:
    """SQL implementation of DocumentStore."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _is_postgres(self) -> bool:
        return self._session.get_bind().dialect.name == "postgresql"

    async def _execute_search(self, stmt: Select[Any]) -> Result[Any]:
        """Run a similarity query, leaving the session usable if it fails.

        A failed statement aborts the open PostgreSQL transaction; rolling back
        lets the next search strategy run on the same session.
        """
        try:
            return await self._session.execute(stmt)
        except SQLAlchemyError:
            await self._session.rollback()
            raise

    def _searchable_documents(self, hotel_id: uuid.UUID) -> list[Any]:
        return [
            DocumentDB.hotel_id == hotel_id,
            DocumentDB.processed.is_(True),
            DocumentDB.archived.is_(False),
        ]

    async def search_chunks(
        self,
        embedding: np.ndarray,
        hotel_id: uuid.UUID,
        *,
        match_threshold: float,
        limit: int,
    ) -> list[ChunkResult]:
        """Rank chunks of the hotel's searchable documents."""
        stmt: Select[Any] = (
            select(DocumentChunkDB, DocumentDB)
            .join(DocumentDB, DocumentChunkDB.document_id == DocumentDB.id)
            .where(DocumentChunkDB.hotel_id == hotel_id, *self._searchable_documents(hotel_id))
        )

        if self._is_postgres():
            distance = DocumentChunkDB.embedding.cosine_distance(_as_vector(embedding))
            similarity = (1 - distance).label("similarity")
            stmt = (
                stmt.add_columns(similarity)
                .where((1 - distance) > match_threshold)
                .order_by(distance, DocumentDB.created_at.desc(), DocumentChunkDB.chunk_index)
                .limit(limit)
            )
            result = await self._execute_search(stmt)
            return [
                _to_chunk_result(chunk, document, score)
                for chunk, document, score in result.all()
            ]

        result = await self._execute_search(stmt)
        candidates = [
            ScoredCandidate(
                similarity=cosine_similarity(embedding, np.asarray(chunk.embedding)),
                created_at=document.created_at,
                chunk_index=chunk.chunk_index,
                row=(chunk, document),
            )
            for chunk, document in result.all()
        ]
        ranked = rank_candidates(candidates, match_threshold=match_threshold, limit=limit)
        return [_to_chunk_result(*c.row, c.similarity) for c in ranked]  # type: ignore[misc]

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
        filters = []
        if document_id is not None:
            filters.append(DocumentDB.id == document_id)
        return await self._rank_documents(embedding, hotel_id, filters, match_threshold, limit)

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
        filters = [DocumentDB.id.in_(list(document_ids))]
        return await self._rank_documents(embedding, hotel_id, filters, match_threshold, limit)

    async def _rank_documents(
        self,
        embedding: np.ndarray,
        hotel_id: uuid.UUID,
        filters: list[Any],
        match_threshold: float,
        limit: int,
    ) -> list[DocumentResult]:
        stmt: Select[Any] = select(DocumentDB).where(
            *self._searchable_documents(hotel_id),
            DocumentDB.embedding.is_not(None),
            *filters,
        )

        if self._is_postgres():
            distance = DocumentDB.embedding.cosine_distance(_as_vector(embedding))
            stmt = (
                stmt.add_columns((1 - distance).label("similarity"))
                .where((1 - distance) > match_threshold)
                .order_by(distance, DocumentDB.created_at.desc())
                .limit(limit)
            )
            result = await self._execute_search(stmt)
            return [
                to_document_result(_to_document(row), max(-1.0, min(1.0, float(score))))
                for row, score in result.all()
            ]

        result = await self._execute_search(stmt)
        candidates = [
            ScoredCandidate(
                similarity=cosine_similarity(embedding, np.asarray(row.embedding)),
                created_at=row.created_at,
                chunk_index=0,
                row=row,
            )
            for row in result.scalars().all()
        ]
        ranked = rank_candidates(candidates, match_threshold=match_threshold, limit=limit)
        return [to_document_result(_to_document(c.row), c.similarity) for c in ranked]  # type: ignore[arg-type]

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
        sort_column = getattr(DocumentDB, validate_sort_field(sort_by))

        filters: list[Any] = [DocumentDB.hotel_id == hotel_id, DocumentDB.archived.is_(False)]
        if processed_only:
            filters.append(DocumentDB.processed.is_(True))
        if file_type:
            filters.append(DocumentDB.file_type == file_type)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(DocumentDB.title.ilike(pattern), DocumentDB.description.ilike(pattern))
            )

        total = await self._session.scalar(select(func.count()).select_from(DocumentDB).where(*filters))

        query = (
            select(DocumentDB)
            .where(*filters)
            .order_by(sort_column.desc() if descending else sort_column.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(query)
        return [_to_document(row) for row in result.scalars().all()], int(total or 0)

    async def create_document(self, document: Document) -> Document:
        """Insert a document row."""
        row = DocumentDB(
            id=document.id,
            hotel_id=document.hotel_id,
            uploaded_by=document.uploaded_by,
            title=document.title,
            description=document.description,
            file_type=document.file_type,
            file_url=document.file_url,
            processed=document.processed,
            archived=document.archived,
            created_at=document.created_at,
        )
        self._session.add(row)
        await self._session.commit()
        return document

    async def get_document(self, document_id: uuid.UUID, hotel_id: uuid.UUID) -> Document | None:
        """Get a non-archived document of the hotel."""
        result = await self._session.execute(
            select(DocumentDB).where(
                DocumentDB.id == document_id,
                DocumentDB.hotel_id == hotel_id,
                DocumentDB.archived.is_(False),
            )
        )
        row = result.scalar_one_or_none()
        return _to_document(row) if row is not None else None

    async def list_chunks(
        self, document_id: uuid.UUID, hotel_id: uuid.UUID
    ) -> list[DocumentChunk]:
        """List chunks in order."""
        result = await self._session.execute(
            select(DocumentChunkDB)
            .where(
                DocumentChunkDB.document_id == document_id,
                DocumentChunkDB.hotel_id == hotel_id,
            )
            .order_by(DocumentChunkDB.chunk_index)
        )
        return [
            DocumentChunk(
                id=row.id,
                document_id=row.document_id,
                hotel_id=row.hotel_id,
                chunk_index=row.chunk_index,
                content=row.content,
                chunk_type=row.chunk_type,
            )
            for row in result.scalars().all()
        ]

    async def replace_chunks(
        self, document_id: uuid.UUID, hotel_id: uuid.UUID, chunks: Sequence[NewChunk]
    ) -> int:
        """Replace a document's chunks in one transaction."""
        await self._session.execute(
            delete(DocumentChunkDB).where(
                DocumentChunkDB.document_id == document_id,
                DocumentChunkDB.hotel_id == hotel_id,
            )
        )
        for new_chunk in chunks:
            self._session.add(
                DocumentChunkDB(
                    id=uuid.uuid4(),
                    document_id=document_id,
                    hotel_id=hotel_id,
                    chunk_index=new_chunk.chunk_index,
                    content=new_chunk.content,
                    chunk_type=new_chunk.chunk_type,
                    embedding=_as_vector(new_chunk.embedding),
                )
            )
        await self._session.commit()
        return len(chunks)

    async def mark_processed(
        self, document_id: uuid.UUID, hotel_id: uuid.UUID, embedding: np.ndarray | None
    ) -> None:
        """Store the document vector and flag the document searchable."""
        await self._session.execute(
            update(DocumentDB)
            .where(DocumentDB.id == document_id, DocumentDB.hotel_id == hotel_id)
            .values(
                processed=True,
                embedding=None if embedding is None else _as_vector(embedding),
            )
        )
        await self._session.commit()

    async def archive_document(self, document_id: uuid.UUID, hotel_id: uuid.UUID) -> bool:
        """Soft-delete a document and drop its chunks."""
        result = await self._session.execute(
            update(DocumentDB)
            .where(
                DocumentDB.id == document_id,
                DocumentDB.hotel_id == hotel_id,
                DocumentDB.archived.is_(False),
            )
            .values(archived=True)
        )
        if result.rowcount == 0:
            await self._session.rollback()
            return False

        await self._session.execute(
            delete(DocumentChunkDB).where(DocumentChunkDB.document_id == document_id)
        )
        await self._session.commit()
        return True
