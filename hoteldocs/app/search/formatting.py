"""Response shaping for search results."""

from collections.abc import Sequence

from hoteldocs.app.models.search import (
    ChunkResult,
    DocumentResult,
    SearchOptions,
    SearchResponse,
    SearchType,
)


def build_search_response(
    *,
    query: str,
    hotel_id: str,
    options: SearchOptions,
    results: Sequence[ChunkResult | DocumentResult],
    search_type: SearchType,
) -> SearchResponse:
    """Build the success envelope, echoing the request scope.

    Results beyond options.limit are dropped so count never exceeds it.
    """
    capped = list(results)[: options.limit]
    return SearchResponse(
        query=query,
        hotel_id=hotel_id,
        document_id=str(options.document_id) if options.document_id else None,
        document_ids=[str(d) for d in options.document_ids] if options.document_ids else None,
        results=capped,
        count=len(capped),
        search_type=search_type,
        use_chunks=options.use_chunks,
    )
