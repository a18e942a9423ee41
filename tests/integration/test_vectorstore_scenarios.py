"""
End-to-end vector store scenarios against the in-memory engine

The engine is configured with a refresh interval, so writes and deletes are
acknowledged before they become searchable. Every read-after-write check
polls with a bounded timeout instead of asserting immediately.
"""

import asyncio
import time

import pytest

from knnstore.core.exceptions import SchemaConflictError
from knnstore.embedding.mock import MockEmbeddingProvider
from knnstore.engine.memory import InMemorySearchEngine
from knnstore.vectorstore.schema_manager import IndexSchemaManager
from knnstore.vectorstore.schemas import (
    ALL_DOCUMENTS,
    DISTANCE_METADATA_KEY,
    Document,
    IndexConfig,
    SearchRequest,
)
from knnstore.vectorstore.similarity import SimilarityFunction
from knnstore.vectorstore.store import KnnVectorStore

REFRESH_INTERVAL = 0.3

DOCUMENTS = [
    Document(
        id="1",
        content="Spring AI provides portable abstractions for vector stores and embedding models.",
        metadata={"meta1": "meta1"},
    ),
    Document(
        id="2",
        content="Time Shelter is a novel about a clinic that recreates past decades for its patients.",
        metadata={},
    ),
    Document(
        id="3",
        content="The Great Depression (1929–1939) was an economic shock that impacted most countries.",
        metadata={"meta2": "meta2"},
    ),
]

QUERY = SearchRequest.for_text("Great Depression", top_k=1, similarity_threshold=0.0)


async def wait_until(fetch, predicate, timeout: float = 5.0, interval: float = 0.05):
    """Poll fetch() until predicate(result) holds; fail after timeout."""
    deadline = time.monotonic() + timeout
    while True:
        result = await fetch()
        if predicate(result):
            return result
        if time.monotonic() >= deadline:
            pytest.fail(f"condition not met within {timeout}s, last result: {result!r}")
        await asyncio.sleep(interval)


@pytest.fixture
def engine():
    return InMemorySearchEngine(refresh_interval=REFRESH_INTERVAL)


@pytest.fixture
def provider():
    return MockEmbeddingProvider(dimension=256)


@pytest.mark.asyncio
@pytest.mark.parametrize("similarity_function", ["cosinesimil", "l1", "l2", "linf"])
async def test_add_search_and_delete(engine, provider, similarity_function) -> None:
    store = KnnVectorStore(engine, provider, index_name="document-index")
    await store.delete([ALL_DOCUMENTS])
    if similarity_function != "cosinesimil":
        store.with_similarity_function(similarity_function)

    await store.add(DOCUMENTS)

    await wait_until(lambda: store.similarity_search(QUERY), lambda r: len(r) == 1)

    results = await store.similarity_search(QUERY)
    assert len(results) == 1
    result_doc = results[0].document
    assert result_doc.id == DOCUMENTS[2].id
    assert "The Great Depression (1929–1939) was an economic shock" in result_doc.content
    assert len(result_doc.metadata) == 2
    assert "meta2" in result_doc.metadata
    assert DISTANCE_METADATA_KEY in result_doc.metadata

    await store.delete([d.id for d in DOCUMENTS])

    await wait_until(lambda: store.similarity_search(QUERY), lambda r: len(r) == 0)


@pytest.mark.asyncio
async def test_writes_are_not_visible_before_refresh(engine, provider) -> None:
    store = KnnVectorStore(engine, provider, index_name="document-index")

    await store.add(DOCUMENTS)

    assert await store.similarity_search(QUERY) == []
    await wait_until(lambda: store.similarity_search(QUERY), lambda r: len(r) == 1)


@pytest.mark.asyncio
async def test_delete_all_empties_index(engine, provider) -> None:
    store = KnnVectorStore(engine, provider, index_name="document-index")
    await store.add(DOCUMENTS)
    request = SearchRequest.for_text("Great Depression", top_k=10)
    await wait_until(lambda: store.similarity_search(request), lambda r: len(r) == 3)

    await store.delete(ALL_DOCUMENTS)

    await wait_until(lambda: store.similarity_search(request), lambda r: r == [])


@pytest.mark.asyncio
async def test_two_indices_are_independent(engine, provider) -> None:
    store = KnnVectorStore(engine, provider, index_name="document-index")
    another = KnnVectorStore(engine, provider, index_name="another_index", dimension=256)

    await store.add(DOCUMENTS)
    await another.add([DOCUMENTS[0]])

    request = SearchRequest.for_text("Great Depression", top_k=10)
    await wait_until(lambda: store.similarity_search(request), lambda r: len(r) == 3)
    await wait_until(lambda: another.similarity_search(request), lambda r: len(r) == 1)

    await another.delete([ALL_DOCUMENTS])

    await wait_until(lambda: another.similarity_search(request), lambda r: r == [])
    assert len(await store.similarity_search(request)) == 3


@pytest.mark.asyncio
async def test_store_with_other_dimension_conflicts(engine, provider) -> None:
    store = KnnVectorStore(engine, provider, index_name="document-index")
    await store.add(DOCUMENTS)

    mismatched = KnnVectorStore(
        engine, MockEmbeddingProvider(dimension=128), index_name="document-index"
    )

    with pytest.raises(SchemaConflictError):
        await mismatched.add(DOCUMENTS)


@pytest.mark.asyncio
async def test_ensure_index_twice_with_other_dimension_conflicts(engine) -> None:
    manager = IndexSchemaManager(engine)
    await manager.ensure_index(IndexConfig(name="shape", dimension=256))

    with pytest.raises(SchemaConflictError):
        await manager.ensure_index(IndexConfig(name="shape", dimension=1024))


@pytest.mark.asyncio
async def test_concurrent_bootstrap_creates_index_once(engine, provider) -> None:
    stores = [
        KnnVectorStore(engine, provider, index_name="shared", similarity_function=SimilarityFunction.L2)
        for _ in range(5)
    ]

    await asyncio.gather(*(s.similarity_search(QUERY) for s in stores))

    mapping = await engine.get_index_mapping("shared")
    assert mapping["_meta"]["similarity_function"] == "l2"


@pytest.mark.asyncio
async def test_search_respects_caller_timeout(provider) -> None:
    class SlowEngine(InMemorySearchEngine):
        async def knn_search(self, *args, **kwargs):
            await asyncio.sleep(10)
            return []

    store = KnnVectorStore(SlowEngine(), provider, index_name="slow")

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(store.similarity_search(QUERY), timeout=0.1)
