"""Models package - re-exports for convenience."""

from hoteldocs.app.models.chat import AnswerRequest, AnswerResponse, AnswerSource
from hoteldocs.app.models.docs import (
    Document,
    DocumentChunk,
    DocumentListResponse,
    UploadResponse,
    ViewUrlResponse,
)
from hoteldocs.app.models.search import (
    ChunkResult,
    DocumentResult,
    EmbeddingRequest,
    EmbeddingResponse,
    ErrorResponse,
    SearchOptions,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SearchType,
)

__all__ = [
    # Chat
    "AnswerRequest",
    "AnswerResponse",
    "AnswerSource",
    # Documents
    "Document",
    "DocumentChunk",
    "DocumentListResponse",
    "UploadResponse",
    "ViewUrlResponse",
    # Search
    "ChunkResult",
    "DocumentResult",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "ErrorResponse",
    "SearchOptions",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SearchType",
]
