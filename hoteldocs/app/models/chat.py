"""Chatbot answer contracts."""

from pydantic import BaseModel, Field


class AnswerRequest(BaseModel):
    """Request body for POST /api/chat/answer."""

    query: str
    hotel_id: str | None = None
    hotel_name: str = Field("our hotel", min_length=1)
    limit: int = Field(5, ge=1)
    match_threshold: float = Field(0.0, ge=0.0, le=1.0)


class AnswerSource(BaseModel):
    """One result cited by the composed answer."""

    title: str
    relevance: float
    content: str
    file_type: str
    is_chunk: bool


class AnswerResponse(BaseModel):
    """Guest-facing answer built from search results."""

    success: bool = True
    found: bool
    response: str
    sources: list[AnswerSource]
    query: str
    hotel_name: str
    count: int
    search_type: str
