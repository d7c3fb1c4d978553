"""Unit tests for the document search engine over the in-memory store."""

import asyncio
import time
import uuid

import numpy as np
import pytest

from hoteldocs.app.db.inmemory import InMemoryDocumentStore
from hoteldocs.app.embeddings.providers import HashingEmbedder
from hoteldocs.app.embeddings.service import EmbeddingService
from hoteldocs.app.errors import (
    InvalidInputError,
    MissingScopeError,
    SearchBackendError,
    SearchTimeoutError,
)
from hoteldocs.app.models.search import ChunkResult, DocumentResult, SearchOptions, SearchType
from hoteldocs.app.search.engine import DocumentSearchEngine
from tests.factories import HOTEL_1, HOTEL_2, SeedFn, seed_document

BREAKFAST = "Free breakfast served 7-10am in the lobby restaurant."


@pytest.fixture
def query_embeddings() -> EmbeddingService:
    """Separate, not-yet-loaded service for the engine under test."""
    return EmbeddingService(HashingEmbedder())


@pytest.fixture
def engine(store: InMemoryDocumentStore, query_embeddings: EmbeddingService) -> DocumentSearchEngine:
    return DocumentSearchEngine(store, query_embeddings, timeout_seconds=5.0)


@pytest.mark.asyncio
@pytest.mark.parametrize("hotel_id", [None, "", "   "])
async def test_missing_hotel_id_fails_before_any_work(
    engine: DocumentSearchEngine,
    store: InMemoryDocumentStore,
    query_embeddings: EmbeddingService,
    hotel_id: str | None,
) -> None:
    """Test missing scope fails fast with no store or embedding calls."""
    with pytest.raises(MissingScopeError) as exc_info:
        await engine.search("breakfast hours", hotel_id)

    assert exc_info.value.status_code == 400
    assert store.calls == []
    assert not query_embeddings.is_loaded


@pytest.mark.asyncio
async def test_malformed_hotel_id_is_invalid_input(
    engine: DocumentSearchEngine, store: InMemoryDocumentStore
) -> None:
    with pytest.raises(InvalidInputError):
        await engine.search("breakfast", "hotel-one")

    assert store.calls == []


@pytest.mark.asyncio
async def test_malformed_document_ids_are_invalid_input(engine: DocumentSearchEngine) -> None:
    """Test document_ids must be a sequence of identifiers."""
    with pytest.raises(InvalidInputError):
        await engine.search("breakfast", HOTEL_1, {"document_ids": "not-a-list"})

    with pytest.raises(InvalidInputError):
        await engine.search("breakfast", HOTEL_1, {"document_ids": ["not-a-uuid"]})


@pytest.mark.asyncio
async def test_breakfast_chunk_found(engine: DocumentSearchEngine, seed: SeedFn) -> None:
    """Test the end-to-end chunk hit for a breakfast question."""
    await seed(title="Dining", chunks=[BREAKFAST])

    response = await engine.search(
        "breakfast hours", str(HOTEL_1), SearchOptions(match_threshold=0.1, limit=5, use_chunks=True)
    )

    assert response.success is True
    assert response.search_type == SearchType.rag_chunks
    assert response.count == len(response.results) == 1
    result = response.results[0]
    assert isinstance(result, ChunkResult)
    assert result.content == BREAKFAST
    assert result.similarity > 0.1
    assert response.hotel_id == str(HOTEL_1)
    assert response.use_chunks is True


@pytest.mark.asyncio
async def test_high_threshold_returns_empty_success(engine: DocumentSearchEngine, seed: SeedFn) -> None:
    """Test no match above the threshold is a success with count 0."""
    await seed(title="Dining", chunks=[BREAKFAST])

    response = await engine.search(
        "breakfast hours", HOTEL_1, SearchOptions(match_threshold=0.99)
    )

    assert response.success is True
    assert response.count == 0
    assert response.results == []
    assert response.search_type == SearchType.all_documents


@pytest.mark.asyncio
async def test_documents_without_chunks_fall_back_to_document_search(
    engine: DocumentSearchEngine, seed: SeedFn
) -> None:
    """Test the fallback never reports rag_chunks when chunks are absent."""
    document = await seed(title="Pool", description="Fresh towels available at the pool")

    unscoped = await engine.search("towels", HOTEL_1)
    single = await engine.search("towels", HOTEL_1, SearchOptions(document_id=document.id))
    multiple = await engine.search("towels", HOTEL_1, SearchOptions(document_ids=[document.id]))

    assert unscoped.search_type == SearchType.all_documents
    assert single.search_type == SearchType.single_document
    assert multiple.search_type == SearchType.multiple_documents
    for response in (unscoped, single, multiple):
        assert response.count == 1
        assert isinstance(response.results[0], DocumentResult)
        assert response.results[0].document_id == document.id
    assert single.document_id == str(document.id)
    assert multiple.document_ids == [str(document.id)]


@pytest.mark.asyncio
async def test_use_chunks_false_skips_chunk_search(
    engine: DocumentSearchEngine, store: InMemoryDocumentStore, seed: SeedFn
) -> None:
    await seed(title="Dining", chunks=[BREAKFAST], description="Breakfast and dining times")

    response = await engine.search("breakfast", HOTEL_1, SearchOptions(use_chunks=False))

    assert "search_chunks" not in store.calls
    assert response.search_type == SearchType.all_documents
    assert response.use_chunks is False


@pytest.mark.asyncio
async def test_results_never_leak_across_hotels(engine: DocumentSearchEngine, seed: SeedFn) -> None:
    """Test every result belongs to the requested hotel."""
    rng = np.random.default_rng(7)
    vocabulary = ["pool", "spa", "breakfast", "parking", "towels", "gym", "wifi", "checkout"]
    for i in range(20):
        words = rng.choice(vocabulary, size=4).tolist()
        hotel = HOTEL_1 if i % 2 == 0 else HOTEL_2
        await seed(hotel_id=hotel, title=f"Doc {i}", chunks=[" ".join(words)], description=" ".join(words))

    for word in vocabulary:
        for hotel in (HOTEL_1, HOTEL_2):
            for use_chunks in (True, False):
                response = await engine.search(
                    word, hotel, SearchOptions(limit=50, match_threshold=0.0, use_chunks=use_chunks)
                )
                assert all(r.hotel_id == hotel for r in response.results)


@pytest.mark.asyncio
async def test_document_scope_cannot_reach_other_hotel(engine: DocumentSearchEngine, seed: SeedFn) -> None:
    """Test document_id scoping is intersected with the hotel scope."""
    foreign = await seed(hotel_id=HOTEL_2, title="Pool", description="Fresh towels available at the pool")

    response = await engine.search(
        "towels", HOTEL_1, SearchOptions(document_id=foreign.id, use_chunks=False)
    )

    assert response.count == 0


@pytest.mark.asyncio
async def test_repeated_search_is_idempotent(engine: DocumentSearchEngine, seed: SeedFn) -> None:
    for i in range(5):
        await seed(title=f"Pool {i}", chunks=[f"The pool area {i} has towels", "pool towels"], age_days=i)

    first = await engine.search("pool towels", HOTEL_1, SearchOptions(limit=10))
    second = await engine.search("pool towels", HOTEL_1, SearchOptions(limit=10))

    assert first.count == second.count
    assert [r.model_dump() for r in first.results] == [r.model_dump() for r in second.results]


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 3, 5])
async def test_limit_is_enforced(engine: DocumentSearchEngine, seed: SeedFn, limit: int) -> None:
    await seed(title="Pool", chunks=[f"pool rule number {i}" for i in range(8)])

    response = await engine.search("pool rule", HOTEL_1, SearchOptions(limit=limit, match_threshold=0.0))

    assert response.count == limit
    assert len(response.results) <= limit


@pytest.mark.asyncio
async def test_limit_clamped_to_maximum(store: InMemoryDocumentStore, seed: SeedFn) -> None:
    await seed(title="Pool", chunks=[f"pool rule number {i}" for i in range(8)])
    engine = DocumentSearchEngine(store, EmbeddingService(HashingEmbedder()), max_limit=2)

    response = await engine.search("pool rule", HOTEL_1, SearchOptions(limit=10, match_threshold=0.0))

    assert response.count == 2


@pytest.mark.asyncio
async def test_results_sorted_by_similarity(engine: DocumentSearchEngine, seed: SeedFn) -> None:
    await seed(
        title="Amenities",
        chunks=["spa", "spa sauna", "spa sauna steam room massage", "parking garage"],
    )

    response = await engine.search("spa sauna", HOTEL_1, SearchOptions(limit=10, match_threshold=0.0))
    scores = [r.similarity for r in response.results]

    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", None])
async def test_empty_query_lists_recent_documents(
    engine: DocumentSearchEngine,
    query_embeddings: EmbeddingService,
    seed: SeedFn,
    query: str | None,
) -> None:
    """Test the listing path: newest first, no embedding, no scores."""
    await seed(title="Oldest", age_days=3)
    await seed(title="Newest", age_days=0)
    await seed(title="Middle", age_days=1)
    await seed(title="Draft", processed=False)
    await seed(hotel_id=HOTEL_2, title="Elsewhere")

    response = await engine.search(query, HOTEL_1, SearchOptions(limit=5))

    assert response.search_type == SearchType.all_documents
    assert [r.title for r in response.results] == ["Newest", "Middle", "Oldest"]
    assert all(r.similarity is None for r in response.results)
    assert not query_embeddings.is_loaded


@pytest.mark.asyncio
async def test_unprocessed_documents_are_not_searchable(engine: DocumentSearchEngine, seed: SeedFn) -> None:
    await seed(title="Dining", chunks=[BREAKFAST], processed=False)

    for use_chunks in (True, False):
        response = await engine.search(
            "breakfast", HOTEL_1, SearchOptions(match_threshold=0.0, use_chunks=use_chunks)
        )
        assert response.count == 0


@pytest.mark.asyncio
async def test_archived_documents_are_not_searchable(
    engine: DocumentSearchEngine, store: InMemoryDocumentStore, seed: SeedFn
) -> None:
    document = await seed(title="Dining", chunks=[BREAKFAST])
    await store.archive_document(document.id, HOTEL_1)

    response = await engine.search("breakfast", HOTEL_1, SearchOptions(match_threshold=0.0))

    assert response.count == 0


class FlakyStore(InMemoryDocumentStore):
    """Store whose similarity calls can be made to fail or stall."""

    def __init__(self, *, fail_chunks: bool = False, fail_documents: bool = False, delay: float = 0.0) -> None:
        super().__init__()
        self.fail_chunks = fail_chunks
        self.fail_documents = fail_documents
        self.delay = delay

    async def search_chunks(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        await asyncio.sleep(self.delay)
        if self.fail_chunks:
            raise RuntimeError("chunk index unavailable")
        return await super().search_chunks(*args, **kwargs)

    async def search_documents(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        if self.fail_documents:
            raise RuntimeError("documents table unavailable")
        return await super().search_documents(*args, **kwargs)


@pytest.mark.asyncio
async def test_chunk_failure_recovers_through_fallback(embeddings: EmbeddingService) -> None:
    store = FlakyStore(fail_chunks=True)
    await seed_document(store, embeddings, title="Dining", chunks=[BREAKFAST])
    engine = DocumentSearchEngine(store, EmbeddingService(HashingEmbedder()))

    response = await engine.search("breakfast", HOTEL_1)

    assert response.success is True
    assert response.search_type == SearchType.all_documents
    assert response.count == 1


@pytest.mark.asyncio
async def test_fallback_failure_raises_backend_error() -> None:
    store = FlakyStore(fail_chunks=True, fail_documents=True)
    engine = DocumentSearchEngine(store, EmbeddingService(HashingEmbedder()))

    with pytest.raises(SearchBackendError) as exc_info:
        await engine.search("breakfast", HOTEL_1)

    assert exc_info.value.summary == "Database search failed"


@pytest.mark.asyncio
async def test_search_timeout() -> None:
    """Test exceeding the wall-clock budget fails instead of returning partial results."""
    store = FlakyStore(delay=1.0)
    engine = DocumentSearchEngine(store, EmbeddingService(HashingEmbedder()), timeout_seconds=0.05)

    with pytest.raises(SearchTimeoutError) as exc_info:
        await engine.search("breakfast", HOTEL_1)

    assert exc_info.value.status_code == 504


class SlowLoadingEmbedder(HashingEmbedder):
    def load(self) -> None:
        time.sleep(0.3)


@pytest.mark.asyncio
async def test_first_model_load_is_outside_the_budget() -> None:
    """Test a slow first load does not count against the search timeout."""
    engine = DocumentSearchEngine(
        InMemoryDocumentStore(), EmbeddingService(SlowLoadingEmbedder()), timeout_seconds=0.2
    )

    response = await engine.search("breakfast", HOTEL_1)

    assert response.count == 0


@pytest.mark.asyncio
async def test_uuid_hotel_id_accepted(engine: DocumentSearchEngine) -> None:
    response = await engine.search("breakfast", uuid.UUID(str(HOTEL_1)))

    assert response.hotel_id == str(HOTEL_1)
