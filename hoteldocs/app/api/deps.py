"""FastAPI dependency providers.

Collaborators are resolved here so tests can swap them through
app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hoteldocs.app.config import Settings, get_settings
from hoteldocs.app.db.engine import get_session
from hoteldocs.app.db.repositories import DocumentStore
from hoteldocs.app.db.sql_repositories import SqlDocumentStore
from hoteldocs.app.embeddings.service import EmbeddingService, get_embedding_service
from hoteldocs.app.search.engine import DocumentSearchEngine
from hoteldocs.app.storage.blobs import BlobStore, LocalBlobStore


def get_document_store(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DocumentStore:
    """Document store bound to the request's session."""
    return SqlDocumentStore(session)


def get_blob_store(settings: Annotated[Settings, Depends(get_settings)]) -> BlobStore:
    """Blob store rooted at the configured directory."""
    return LocalBlobStore(settings.blob_root)


def get_embeddings() -> EmbeddingService:
    """Process-wide embedding service."""
    return get_embedding_service()


def get_search_engine(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    embeddings: Annotated[EmbeddingService, Depends(get_embeddings)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DocumentSearchEngine:
    """Search engine over the request's document store."""
    return DocumentSearchEngine(
        store,
        embeddings,
        timeout_seconds=settings.search_timeout_seconds,
        max_limit=settings.search_max_limit,
    )
