"""Document endpoints - upload, list, view, archive, reprocess."""

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from hoteldocs.app.api.auth import get_current_context
from hoteldocs.app.api.deps import get_blob_store, get_document_store, get_embeddings
from hoteldocs.app.config import Settings, get_settings
from hoteldocs.app.db.context import HotelContext
from hoteldocs.app.db.repositories import DocumentStore
from hoteldocs.app.docs.ingest import ingest_document, reprocess_document
from hoteldocs.app.embeddings.service import EmbeddingService
from hoteldocs.app.errors import DocumentNotFoundError
from hoteldocs.app.models.docs import DocumentListResponse, UploadResponse, ViewUrlResponse
from hoteldocs.app.models.search import ErrorResponse
from hoteldocs.app.storage.blobs import BlobStore
from hoteldocs.app.storage.signing import sign_blob_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
)
async def upload_document(
    ctx: Annotated[HotelContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    blobs: Annotated[BlobStore, Depends(get_blob_store)],
    embeddings: Annotated[EmbeddingService, Depends(get_embeddings)],
    settings: Annotated[Settings, Depends(get_settings)],
    file: Annotated[UploadFile, File()],
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
) -> UploadResponse:
    """Upload a document, then chunk and embed it for search."""
    # One byte past the limit is enough to reject oversize uploads
    data = await file.read(settings.max_upload_bytes + 1)

    result = await ingest_document(
        store=store,
        blobs=blobs,
        embeddings=embeddings,
        context=ctx,
        filename=file.filename,
        data=data,
        title=title,
        description=description,
        content_type=file.content_type,
        settings=settings,
    )
    logger.info(
        f"[POST /api/upload] hotel={ctx.hotel_id} document={result.document.id} "
        f"chunks={result.chunk_count}"
    )
    return UploadResponse(
        document_id=result.document.id,
        chunk_count=result.chunk_count,
        processed=result.document.processed,
    )


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    ctx: Annotated[HotelContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
    search: Annotated[str | None, Query(max_length=200)] = None,
    file_type: Annotated[str | None, Query()] = None,
    sort_by: Annotated[str, Query(pattern="^(created_at|title|file_type)$")] = "created_at",
    sort_order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
) -> DocumentListResponse:
    """List the hotel's documents (archived documents excluded)."""
    documents, total = await store.list_documents(
        ctx.hotel_id,
        limit=limit,
        offset=offset,
        search=search,
        file_type=file_type,
        sort_by=sort_by,
        descending=sort_order == "desc",
    )
    return DocumentListResponse(documents=documents, total=total)


@router.get(
    "/documents/{document_id}/view",
    response_model=ViewUrlResponse,
    responses={404: {"model": ErrorResponse}},
)
async def view_document(
    document_id: UUID,
    ctx: Annotated[HotelContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ViewUrlResponse:
    """Issue a short-lived signed URL for the document's file."""
    document = await store.get_document(document_id, ctx.hotel_id)
    if document is None:
        raise DocumentNotFoundError(f"Document {document_id} not found")

    url = sign_blob_url(
        document.file_url, settings.blob_signing_secret, settings.signed_url_ttl_seconds
    )
    return ViewUrlResponse(
        url=url,
        expires_in=settings.signed_url_ttl_seconds,
        file_type=document.file_type,
        title=document.title,
    )


@router.delete("/documents/{document_id}", responses={404: {"model": ErrorResponse}})
async def archive_document(
    document_id: UUID,
    ctx: Annotated[HotelContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> dict[str, Any]:
    """Archive a document; it disappears from listings and search."""
    archived = await store.archive_document(document_id, ctx.hotel_id)
    if not archived:
        raise DocumentNotFoundError(f"Document {document_id} not found")

    logger.info(f"[DELETE /api/documents] hotel={ctx.hotel_id} document={document_id} archived")
    return {"success": True, "document_id": str(document_id)}


@router.post(
    "/documents/{document_id}/reprocess",
    response_model=UploadResponse,
    responses={404: {"model": ErrorResponse}},
)
async def reprocess(
    document_id: UUID,
    ctx: Annotated[HotelContext, Depends(get_current_context)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    blobs: Annotated[BlobStore, Depends(get_blob_store)],
    embeddings: Annotated[EmbeddingService, Depends(get_embeddings)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UploadResponse:
    """Re-extract, re-chunk and re-embed a stored document."""
    result = await reprocess_document(
        store=store,
        blobs=blobs,
        embeddings=embeddings,
        context=ctx,
        document_id=document_id,
        settings=settings,
    )
    return UploadResponse(
        document_id=result.document.id,
        chunk_count=result.chunk_count,
        processed=result.document.processed,
    )
