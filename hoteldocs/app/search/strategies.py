"""Search strategies and the first-non-empty combinator.

A search is an ordered list of strategies. The chunk strategy runs first when
chunk search is enabled; exactly one document-level strategy follows, chosen
by how the request is scoped. The combinator stops at the first strategy that
returns rows.
"""

import logging
import time
from dataclasses import dataclass
from uuid import UUID

import numpy as np

from hoteldocs.app.db.repositories import DocumentStore
from hoteldocs.app.errors import SearchBackendError
from hoteldocs.app.models.search import ChunkResult, DocumentResult, SearchOptions, SearchType
from hoteldocs.app.utils.logging import StructuredSearchLogger
from hoteldocs.app.utils.metrics import PrometheusSearchMetrics

logger = logging.getLogger(__name__)

SearchRows = list[ChunkResult] | list[DocumentResult]


@dataclass(frozen=True)
class StrategyRequest:
    """Inputs shared by every strategy of one search."""

    embedding: np.ndarray
    hotel_id: UUID
    options: SearchOptions


class SearchStrategy:
    """Base class for a named similarity-search strategy."""

    name: str = "base"
    search_type: SearchType = SearchType.all_documents

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def run(self, request: StrategyRequest) -> SearchRows:
        raise NotImplementedError


class ChunkSearchStrategy(SearchStrategy):
    name = "chunks"
    search_type = SearchType.rag_chunks

    async def run(self, request: StrategyRequest) -> SearchRows:
        return await self._store.search_chunks(
            request.embedding,
            request.hotel_id,
            match_threshold=request.options.match_threshold,
            limit=request.options.limit,
        )


class DocumentIdsStrategy(SearchStrategy):
    name = "document_ids"
    search_type = SearchType.multiple_documents

    async def run(self, request: StrategyRequest) -> SearchRows:
        return await self._store.search_documents_by_ids(
            request.embedding,
            request.hotel_id,
            request.options.document_ids or [],
            match_threshold=request.options.match_threshold,
            limit=request.options.limit,
        )


class SingleDocumentStrategy(SearchStrategy):
    name = "single_document"
    search_type = SearchType.single_document

    async def run(self, request: StrategyRequest) -> SearchRows:
        return await self._store.search_documents(
            request.embedding,
            request.hotel_id,
            match_threshold=request.options.match_threshold,
            limit=request.options.limit,
            document_id=request.options.document_id,
        )


class AllDocumentsStrategy(SearchStrategy):
    name = "all_documents"
    search_type = SearchType.all_documents

    async def run(self, request: StrategyRequest) -> SearchRows:
        return await self._store.search_documents(
            request.embedding,
            request.hotel_id,
            match_threshold=request.options.match_threshold,
            limit=request.options.limit,
        )


def plan_strategies(options: SearchOptions, store: DocumentStore) -> list[SearchStrategy]:
    """Build the ordered strategy list for a request.

    Document-level scoping precedence: document_ids (non-empty), then
    document_id, then the whole hotel.
    """
    strategies: list[SearchStrategy] = []
    if options.use_chunks:
        strategies.append(ChunkSearchStrategy(store))

    if options.document_ids:
        strategies.append(DocumentIdsStrategy(store))
    elif options.document_id is not None:
        strategies.append(SingleDocumentStrategy(store))
    else:
        strategies.append(AllDocumentsStrategy(store))

    return strategies


@dataclass
class StrategyOutcome:
    """Rows produced by the chain and the strategy that produced them."""

    rows: SearchRows
    search_type: SearchType
    strategy: str


async def run_first_non_empty(
    strategies: list[SearchStrategy],
    request: StrategyRequest,
    *,
    search_logger: StructuredSearchLogger | None = None,
    metrics: PrometheusSearchMetrics | None = None,
) -> StrategyOutcome:
    """Evaluate strategies in order and return the first non-empty result.

    Errors from non-final strategies are logged and the chain moves on. An
    error from the final strategy raises SearchBackendError. When every
    strategy comes back empty, the final strategy's search_type is reported.

    Raises:
        SearchBackendError: If the final strategy fails
    """
    if not strategies:
        raise ValueError("at least one strategy is required")

    search_logger = search_logger or StructuredSearchLogger()
    hotel_id = str(request.hotel_id)
    last_index = len(strategies) - 1

    for index, strategy in enumerate(strategies):
        is_final = index == last_index
        start = time.monotonic()
        try:
            rows = await strategy.run(request)
        except Exception as e:
            latency_ms = (time.monotonic() - start) * 1000
            search_logger.log_attempt(
                strategy.name, hotel_id, "error", latency_ms, error_reason=str(e)
            )
            if metrics is not None:
                metrics.inc_error(strategy.name)
            if is_final:
                raise SearchBackendError(str(e)) from e
            if metrics is not None:
                metrics.inc_fallback(strategy.name)
            continue

        latency_ms = (time.monotonic() - start) * 1000
        if rows:
            search_logger.log_attempt(
                strategy.name, hotel_id, "success", latency_ms, rows=len(rows)
            )
            return StrategyOutcome(rows=rows, search_type=strategy.search_type, strategy=strategy.name)

        search_logger.log_attempt(strategy.name, hotel_id, "empty", latency_ms)
        if not is_final and metrics is not None:
            metrics.inc_fallback(strategy.name)

    final = strategies[last_index]
    return StrategyOutcome(rows=[], search_type=final.search_type, strategy=final.name)
