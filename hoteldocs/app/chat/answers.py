"""Guest-facing answer composition from search results."""

from hoteldocs.app.errors import InvalidInputError
from hoteldocs.app.models.chat import AnswerResponse, AnswerSource
from hoteldocs.app.models.search import ChunkResult, DocumentResult, SearchResponse

HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.4
MIN_QUERY_LENGTH = 2
MAX_EXTRA_RESULTS = 2
CHUNK_EXCERPT_CHARS = 150
DOCUMENT_EXCERPT_CHARS = 100

FRONT_DESK_FOOTER = "If you need more specific information, please contact our front desk."


def validate_answer_query(query: str | None) -> str:
    """Return the stripped query or reject it.

    Raises:
        InvalidInputError: If the query is shorter than two characters
    """
    text = (query or "").strip()
    if len(text) < MIN_QUERY_LENGTH:
        raise InvalidInputError(
            f"Query must be at least {MIN_QUERY_LENGTH} characters",
            summary="Query is too short",
        )
    return text


def _lead_sentence(similarity: float | None, query: str, hotel_name: str) -> str:
    score = similarity or 0.0
    if score > HIGH_CONFIDENCE:
        return f"Based on our {hotel_name} documentation:"
    if score > MEDIUM_CONFIDENCE:
        return f'I found information about "{query}" in our {hotel_name} documents:'
    return f'Here\'s what I found in our {hotel_name} documents that might help with "{query}":'


def _excerpt(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def _source(result: ChunkResult | DocumentResult) -> AnswerSource:
    return AnswerSource(
        title=result.title,
        relevance=result.similarity or 0.0,
        content=result.content,
        file_type=result.file_type,
        is_chunk=isinstance(result, ChunkResult),
    )


def compose_answer(response: SearchResponse, query: str, hotel_name: str) -> AnswerResponse:
    """Turn search results into a chatbot reply.

    Chunk hits quote the chunk content. Document hits quote title and
    description. Up to two further results are listed as short excerpts.
    """
    results = response.results
    if not results:
        return AnswerResponse(
            found=False,
            response=(
                f'I couldn\'t find specific information about "{query}" in our '
                f"{hotel_name} documents. Let me connect you with our front desk "
                f"for personalized assistance."
            ),
            sources=[],
            query=query,
            hotel_name=hotel_name,
            count=0,
            search_type=response.search_type.value,
        )

    top = results[0]
    lines: list[str] = []

    if isinstance(top, ChunkResult):
        lines.append(_lead_sentence(top.similarity, query, hotel_name))
        lines.append("")
        lines.append(top.content)
        extras = [
            f"{i}. {_excerpt(r.content, CHUNK_EXCERPT_CHARS)}"
            for i, r in enumerate(results[1 : 1 + MAX_EXTRA_RESULTS], start=2)
        ]
    else:
        lines.append(_lead_sentence(top.similarity, query, hotel_name))
        lines.append("")
        lines.append(f"**{top.title}**")
        lines.append(top.content)
        extras = [
            f"{i}. **{r.title}** - {_excerpt(r.content, DOCUMENT_EXCERPT_CHARS)}"
            for i, r in enumerate(results[1 : 1 + MAX_EXTRA_RESULTS], start=2)
        ]

    if extras:
        lines.append("")
        lines.append("**Additional Information:**")
        lines.extend(extras)

    lines.append("")
    lines.append(FRONT_DESK_FOOTER)

    return AnswerResponse(
        found=True,
        response="\n".join(lines),
        sources=[_source(r) for r in results],
        query=query,
        hotel_name=hotel_name,
        count=len(results),
        search_type=response.search_type.value,
    )
