"""Document domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class Document(BaseModel):
    """Hotel document metadata."""

    id: UUID
    hotel_id: UUID
    title: str
    description: str | None = None
    file_type: str
    file_url: str
    processed: bool = False
    archived: bool = False
    uploaded_by: UUID | None = None
    created_at: datetime


class DocumentChunk(BaseModel):
    """Stored chunk of a document (embedding omitted)."""

    id: UUID
    document_id: UUID
    hotel_id: UUID
    chunk_index: int  # 0-based
    content: str
    chunk_type: str = "section"


class DocumentListResponse(BaseModel):
    """Response for GET /api/documents."""

    documents: list[Document]
    total: int


class UploadResponse(BaseModel):
    """Response for POST /api/upload."""

    success: bool = True
    document_id: UUID
    chunk_count: int
    processed: bool


class ViewUrlResponse(BaseModel):
    """Response for GET /api/documents/{id}/view."""

    success: bool = True
    url: str
    expires_in: int
    file_type: str
    title: str
