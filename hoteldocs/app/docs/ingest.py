"""Document ingestion - store the file, chunk, embed and mark searchable."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID, uuid4

import numpy as np

from hoteldocs.app.config import Settings
from hoteldocs.app.db.context import HotelContext
from hoteldocs.app.db.repositories import DocumentStore, NewChunk
from hoteldocs.app.docs.chunker import chunk_document
from hoteldocs.app.docs.extract import extract_text, file_type_from_name
from hoteldocs.app.embeddings.providers import l2_normalize
from hoteldocs.app.embeddings.service import EmbeddingService
from hoteldocs.app.errors import DocumentNotFoundError, InvalidInputError, PayloadTooLargeError
from hoteldocs.app.models.docs import Document
from hoteldocs.app.storage.blobs import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Outcome of ingesting or reprocessing a document."""

    document: Document
    chunk_count: int


def blob_path_for(hotel_id: UUID, file_type: str) -> str:
    """Storage path of a new upload: hotel-{hotel_id}/{uuid}.{ext}."""
    return f"hotel-{hotel_id}/{uuid4()}.{file_type}"


def document_vector(vectors: list[np.ndarray]) -> np.ndarray | None:
    """Mean of the chunk vectors, re-normalised; None without chunks."""
    if not vectors:
        return None
    return l2_normalize(np.mean(np.stack(vectors), axis=0))


async def process_document(
    *,
    store: DocumentStore,
    embeddings: EmbeddingService,
    document: Document,
    data: bytes,
    settings: Settings,
) -> int:
    """Extract, chunk and embed a stored document, then mark it processed.

    Chunks are persisted before the processed flag is set, so a document is
    never searchable with a partial chunk set.

    Returns:
        Number of chunks stored
    """
    text = extract_text(data, document.file_type)
    chunks = chunk_document(
        text,
        max_chars=settings.chunk_max_chars,
        overlap_words=settings.chunk_overlap_words,
    )

    vectors = await embeddings.embed_many([c.content for c in chunks])
    stored = await store.replace_chunks(
        document.id,
        document.hotel_id,
        [
            NewChunk(
                chunk_index=chunk.index,
                content=chunk.content,
                chunk_type=chunk.chunk_type,
                embedding=vector,
            )
            for chunk, vector in zip(chunks, vectors, strict=True)
        ],
    )

    await store.mark_processed(document.id, document.hotel_id, document_vector(vectors))
    logger.info(
        f"[ingest] document={document.id} hotel={document.hotel_id} "
        f"chars={len(text)} chunks={stored}"
    )
    return stored


async def ingest_document(
    *,
    store: DocumentStore,
    blobs: BlobStore,
    embeddings: EmbeddingService,
    context: HotelContext,
    filename: str | None,
    data: bytes,
    title: str | None,
    settings: Settings,
    description: str | None = None,
    content_type: str | None = None,
) -> IngestResult:
    """Ingest an uploaded file for the context's hotel.

    Raises:
        PayloadTooLargeError: If the file exceeds max_upload_bytes
        InvalidInputError: If the file is empty, has no extension or the title is blank
        StorageError: If the blob cannot be stored
    """
    if len(data) > settings.max_upload_bytes:
        raise PayloadTooLargeError(
            f"File is {len(data)} bytes; limit is {settings.max_upload_bytes} bytes"
        )
    if not data:
        raise InvalidInputError("File is empty")
    if not title or not title.strip():
        raise InvalidInputError("Title is required")

    file_type = file_type_from_name(filename)
    if not file_type:
        raise InvalidInputError(f"Cannot determine file type of '{filename}'")

    path = await blobs.put(blob_path_for(context.hotel_id, file_type), data, content_type)

    document = Document(
        id=uuid4(),
        hotel_id=context.hotel_id,
        title=title.strip(),
        description=(description or "").strip() or None,
        file_type=file_type,
        file_url=path,
        processed=False,
        uploaded_by=context.admin_id,
        created_at=datetime.now(timezone.utc),
    )

    try:
        await store.create_document(document)
    except Exception:
        # Row insert failed; remove the orphaned blob before propagating
        await blobs.delete(path)
        raise

    chunk_count = await process_document(
        store=store, embeddings=embeddings, document=document, data=data, settings=settings
    )
    return IngestResult(
        document=document.model_copy(update={"processed": True}), chunk_count=chunk_count
    )


async def reprocess_document(
    *,
    store: DocumentStore,
    blobs: BlobStore,
    embeddings: EmbeddingService,
    context: HotelContext,
    document_id: UUID,
    settings: Settings,
) -> IngestResult:
    """Re-run extraction, chunking and embedding on a stored document.

    Raises:
        DocumentNotFoundError: If the document is unknown to the hotel
    """
    document = await store.get_document(document_id, context.hotel_id)
    if document is None:
        raise DocumentNotFoundError(f"Document {document_id} not found")

    data = await blobs.get(document.file_url)
    chunk_count = await process_document(
        store=store, embeddings=embeddings, document=document, data=data, settings=settings
    )
    return IngestResult(
        document=document.model_copy(update={"processed": True}), chunk_count=chunk_count
    )
