"""Chatbot answer endpoint - POST /api/chat/answer."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from hoteldocs.app.api.deps import get_search_engine
from hoteldocs.app.chat.answers import compose_answer, validate_answer_query
from hoteldocs.app.models.chat import AnswerRequest, AnswerResponse
from hoteldocs.app.models.search import ErrorResponse, SearchOptions
from hoteldocs.app.search.engine import DocumentSearchEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post(
    "/answer",
    response_model=AnswerResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def answer(
    request: AnswerRequest,
    engine: Annotated[DocumentSearchEngine, Depends(get_search_engine)],
) -> AnswerResponse:
    """Answer a guest question from the hotel's documents."""
    query = validate_answer_query(request.query)
    response = await engine.search(
        query,
        request.hotel_id,
        SearchOptions(limit=request.limit, match_threshold=request.match_threshold),
    )
    result = compose_answer(response, query, request.hotel_name)
    logger.info(
        f"[POST /api/chat/answer] hotel={request.hotel_id} found={result.found} "
        f"type={result.search_type}"
    )
    return result
