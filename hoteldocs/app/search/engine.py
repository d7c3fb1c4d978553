"""Document search engine.

Validates scope and options, embeds the query, runs the strategy chain under a
wall-clock budget and shapes the response. The empty-query path is a plain
hotel-scoped listing with no embedding work.
"""

import asyncio
import logging
import time
from typing import Any
from uuid import UUID

from pydantic import ValidationError

from hoteldocs.app.db.repositories import DocumentStore, to_document_result
from hoteldocs.app.embeddings.service import EmbeddingService
from hoteldocs.app.errors import InvalidInputError, MissingScopeError, SearchTimeoutError
from hoteldocs.app.models.search import SearchOptions, SearchResponse, SearchType
from hoteldocs.app.search.formatting import build_search_response
from hoteldocs.app.search.strategies import (
    StrategyOutcome,
    StrategyRequest,
    plan_strategies,
    run_first_non_empty,
)
from hoteldocs.app.utils.logging import StructuredSearchLogger
from hoteldocs.app.utils.metrics import PrometheusSearchMetrics

logger = logging.getLogger(__name__)


def parse_hotel_id(hotel_id: str | UUID | None) -> UUID:
    """Resolve the hotel scope of a request.

    Raises:
        MissingScopeError: If hotel_id is missing or blank
        InvalidInputError: If hotel_id is not a UUID
    """
    if isinstance(hotel_id, UUID):
        return hotel_id
    if hotel_id is None or (isinstance(hotel_id, str) and not hotel_id.strip()):
        raise MissingScopeError("Query and hotel_id are required")
    try:
        return UUID(str(hotel_id).strip())
    except ValueError as e:
        raise InvalidInputError(f"hotel_id must be a valid UUID, got '{hotel_id}'") from e


def parse_options(options: SearchOptions | dict[str, Any] | None) -> SearchOptions:
    """Validate search options.

    Raises:
        InvalidInputError: If any option is malformed
    """
    if options is None:
        return SearchOptions()
    if isinstance(options, SearchOptions):
        return options
    try:
        return SearchOptions.model_validate(options)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid search options: {e.errors()[0]['msg']}") from e


class DocumentSearchEngine:
    """Hotel-scoped semantic search with chunk-first fallback."""

    def __init__(
        self,
        store: DocumentStore,
        embeddings: EmbeddingService,
        *,
        timeout_seconds: float = 60.0,
        max_limit: int = 50,
        metrics: PrometheusSearchMetrics | None = None,
        search_logger: StructuredSearchLogger | None = None,
    ) -> None:
        self._store = store
        self._embeddings = embeddings
        self._timeout_seconds = timeout_seconds
        self._max_limit = max_limit
        self._metrics = metrics or PrometheusSearchMetrics()
        self._search_logger = search_logger or StructuredSearchLogger()

    async def search(
        self,
        query: str | None,
        hotel_id: str | UUID | None,
        options: SearchOptions | dict[str, Any] | None = None,
    ) -> SearchResponse:
        """Search the hotel's documents.

        Raises:
            MissingScopeError: If hotel_id is missing
            InvalidInputError: If hotel_id or options are malformed
            ModelUnavailableError: If the embedding model cannot be loaded
            SearchBackendError: If the final search strategy fails
            SearchTimeoutError: If the search exceeds its time budget
        """
        scope = parse_hotel_id(hotel_id)
        opts = parse_options(options)
        if query is not None and not isinstance(query, str):
            raise InvalidInputError("query must be a string")
        if opts.limit > self._max_limit:
            opts = opts.model_copy(update={"limit": self._max_limit})

        query_text = query or ""
        start = time.monotonic()

        if not query_text.strip():
            response = await self._list_recent(query_text, scope, opts)
        else:
            # First model load is a one-time cost kept outside the search budget
            await self._embeddings.ensure_loaded()
            try:
                outcome = await asyncio.wait_for(
                    self._run_strategies(query_text, scope, opts),
                    timeout=self._timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                raise SearchTimeoutError(
                    f"Search exceeded {self._timeout_seconds:g}s budget"
                ) from e

            response = build_search_response(
                query=query_text,
                hotel_id=str(scope),
                options=opts,
                results=outcome.rows,
                search_type=outcome.search_type,
            )

        latency_ms = (time.monotonic() - start) * 1000
        self._metrics.record_latency(response.search_type.value, latency_ms)
        logger.info(
            f"[search] hotel={scope} type={response.search_type.value} "
            f"count={response.count} latency_ms={latency_ms:.1f}"
        )
        return response

    async def _run_strategies(
        self, query: str, hotel_id: UUID, options: SearchOptions
    ) -> StrategyOutcome:
        embedding = await self._embeddings.embed(query)
        request = StrategyRequest(embedding=embedding, hotel_id=hotel_id, options=options)
        return await run_first_non_empty(
            plan_strategies(options, self._store),
            request,
            search_logger=self._search_logger,
            metrics=self._metrics,
        )

    async def _list_recent(
        self, query: str, hotel_id: UUID, options: SearchOptions
    ) -> SearchResponse:
        documents, _ = await self._store.list_documents(
            hotel_id,
            limit=options.limit,
            sort_by="created_at",
            descending=True,
            processed_only=True,
        )
        return build_search_response(
            query=query,
            hotel_id=str(hotel_id),
            options=options,
            results=[to_document_result(d, None) for d in documents],
            search_type=SearchType.all_documents,
        )
