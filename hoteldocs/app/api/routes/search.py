"""Search endpoints - POST /api/search-documents, POST /api/generate-embedding."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from hoteldocs.app.api.deps import get_embeddings, get_search_engine
from hoteldocs.app.config import Settings, get_settings
from hoteldocs.app.embeddings.service import EmbeddingService
from hoteldocs.app.models.search import (
    EmbeddingRequest,
    EmbeddingResponse,
    ErrorResponse,
    SearchRequest,
    SearchResponse,
)
from hoteldocs.app.search.engine import DocumentSearchEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "/search-documents",
    response_model=SearchResponse,
    responses={**ERROR_RESPONSES, 504: {"model": ErrorResponse}},
)
async def search_documents(
    request: SearchRequest,
    engine: Annotated[DocumentSearchEngine, Depends(get_search_engine)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SearchResponse:
    """Semantic search over a hotel's documents.

    Chunk-level search runs first when use_chunks is set; document-level
    search scoped by document_ids / document_id / hotel is the fallback.
    An empty query lists the hotel's most recent documents.
    """
    logger.info(
        f"[POST /api/search-documents] hotel={request.hotel_id} "
        f"query={request.query!r} limit={request.limit}"
    )
    options = request.to_options(
        settings.search_default_limit, settings.search_default_match_threshold
    )
    return await engine.search(request.query, request.hotel_id, options)


@router.post("/generate-embedding", response_model=EmbeddingResponse, responses=ERROR_RESPONSES)
async def generate_embedding(
    request: EmbeddingRequest,
    embeddings: Annotated[EmbeddingService, Depends(get_embeddings)],
) -> EmbeddingResponse:
    """Embed a text with the configured model."""
    vector = await embeddings.embed(request.text)  # type: ignore[arg-type]
    text = request.text or ""
    logger.info(f"[POST /api/generate-embedding] text_length={len(text)}")
    return EmbeddingResponse(
        embedding=[float(v) for v in vector],
        dimensions=len(vector),
        model=embeddings.model_name,
        text_length=len(text),
    )
