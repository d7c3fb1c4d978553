"""Search request/response contracts and tagged result types."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, Field


class SearchType(str, Enum):
    """Which path produced the results."""

    rag_chunks = "rag_chunks"
    single_document = "single_document"
    multiple_documents = "multiple_documents"
    all_documents = "all_documents"


class ChunkResult(BaseModel):
    """A matched chunk with its similarity score."""

    kind: Literal["chunk"] = "chunk"
    chunk_id: UUID
    document_id: UUID
    hotel_id: UUID
    title: str
    file_type: str
    chunk_index: int
    chunk_type: str
    content: str
    similarity: float = Field(..., ge=-1.0, le=1.0)


class DocumentResult(BaseModel):
    """A matched (or listed) document.

    `similarity` is None on the empty-query listing path.
    """

    kind: Literal["document"] = "document"
    document_id: UUID
    hotel_id: UUID
    title: str
    file_type: str
    content: str
    similarity: float | None = Field(None, ge=-1.0, le=1.0)
    created_at: datetime


SearchResult = Annotated[ChunkResult | DocumentResult, Field(discriminator="kind")]


class SearchOptions(BaseModel):
    """Recognised search options."""

    limit: int = Field(5, ge=1)
    document_id: UUID | None = None
    document_ids: list[UUID] | None = None
    match_threshold: float = Field(0.1, ge=0.0, le=1.0)
    use_chunks: bool = True


class SearchRequest(BaseModel):
    """Request body for POST /api/search-documents."""

    query: str | None = ""
    hotel_id: str | None = None
    limit: int | None = Field(None, ge=1)
    document_id: UUID | None = None
    document_ids: list[UUID] | None = None
    match_threshold: float | None = Field(None, ge=0.0, le=1.0)
    use_chunks: bool = True

    def to_options(self, default_limit: int, default_match_threshold: float) -> SearchOptions:
        """Extract the engine options, filling omitted fields with the defaults."""
        return SearchOptions(
            limit=self.limit if self.limit is not None else default_limit,
            document_id=self.document_id,
            document_ids=self.document_ids,
            match_threshold=(
                self.match_threshold
                if self.match_threshold is not None
                else default_match_threshold
            ),
            use_chunks=self.use_chunks,
        )


class SearchResponse(BaseModel):
    """Successful search response."""

    success: bool = True
    query: str
    hotel_id: str
    document_id: str | None = None
    document_ids: list[str] | None = None
    results: list[SearchResult]
    count: int
    search_type: SearchType
    use_chunks: bool


class ErrorResponse(BaseModel):
    """Failure envelope shared by every endpoint."""

    error: str
    details: str | None = None


class EmbeddingRequest(BaseModel):
    """Request body for POST /api/generate-embedding."""

    text: str | None = None


class EmbeddingResponse(BaseModel):
    """Response for POST /api/generate-embedding."""

    success: bool = True
    embedding: list[float]
    dimensions: int
    model: str
    text_length: int
