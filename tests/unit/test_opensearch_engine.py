"""
Unit tests for OpenSearchEngine

The opensearch-py client is replaced by a MagicMock whose methods are
AsyncMocks; tests assert on request bodies and on error translation.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from opensearchpy.exceptions import (
    ConnectionError as OpenSearchConnectionError,
    NotFoundError,
    RequestError,
    TransportError,
)

from knnstore.core.exceptions import (
    BulkWriteError,
    EngineUnavailableError,
    IndexNotFoundError,
    VectorStoreError,
)
from knnstore.engine.opensearch import OpenSearchEngine, build_knn_query
from knnstore.vectorstore.schemas import StoredRecord
from knnstore.vectorstore.similarity import SimilarityFunction


@pytest.fixture
def client():
    mock_client = MagicMock()
    mock_client.indices.exists = AsyncMock(return_value=True)
    mock_client.indices.get_mapping = AsyncMock()
    mock_client.indices.create = AsyncMock()
    mock_client.bulk = AsyncMock(return_value={"errors": False, "items": []})
    mock_client.delete_by_query = AsyncMock(return_value={"deleted": 3})
    mock_client.search = AsyncMock(return_value={"hits": {"hits": []}})
    mock_client.close = AsyncMock()
    return mock_client


@pytest.fixture
def engine(client):
    return OpenSearchEngine(client)


# ============================================================================
# Index management
# ============================================================================


@pytest.mark.asyncio
async def test_get_index_mapping_missing_index(engine, client) -> None:
    client.indices.exists.return_value = False

    assert await engine.get_index_mapping("docs") is None
    client.indices.get_mapping.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_index_mapping_returns_mappings_section(engine, client) -> None:
    mappings = {"properties": {"embedding": {"type": "knn_vector", "dimension": 3}}}
    client.indices.get_mapping.return_value = {"docs-000001": {"mappings": mappings}}

    assert await engine.get_index_mapping("docs") == mappings


@pytest.mark.asyncio
async def test_create_index(engine, client) -> None:
    body = {"settings": {"index": {"knn": True}}, "mappings": {}}

    assert await engine.create_index("docs", body) is True
    client.indices.create.assert_awaited_once_with(index="docs", body=body)


@pytest.mark.asyncio
async def test_create_index_already_exists_is_not_an_error(engine, client) -> None:
    client.indices.create.side_effect = RequestError(
        400, "resource_already_exists_exception", {}
    )

    assert await engine.create_index("docs", {}) is False


@pytest.mark.asyncio
async def test_create_index_other_request_error(engine, client) -> None:
    client.indices.create.side_effect = RequestError(400, "mapper_parsing_exception", {})

    with pytest.raises(VectorStoreError):
        await engine.create_index("docs", {})


# ============================================================================
# Writes
# ============================================================================


@pytest.mark.asyncio
async def test_bulk_upsert_body(engine, client) -> None:
    records = [
        StoredRecord(id="1", content="a", metadata={"meta1": "meta1"}, embedding=[0.1, 0.2]),
        StoredRecord(id="2", content="b", embedding=[0.3, 0.4]),
    ]

    await engine.bulk_upsert("docs", records)

    actions = client.bulk.await_args.kwargs["body"]
    assert actions == [
        {"index": {"_index": "docs", "_id": "1"}},
        {"content": "a", "metadata": {"meta1": "meta1"}, "embedding": [0.1, 0.2]},
        {"index": {"_index": "docs", "_id": "2"}},
        {"content": "b", "metadata": {}, "embedding": [0.3, 0.4]},
    ]


@pytest.mark.asyncio
async def test_bulk_upsert_item_errors_raise(engine, client) -> None:
    client.bulk.return_value = {
        "errors": True,
        "items": [
            {"index": {"_id": "1", "status": 201}},
            {"index": {"_id": "2", "status": 400, "error": {"type": "mapper_parsing_exception"}}},
        ],
    }

    with pytest.raises(BulkWriteError) as exc_info:
        await engine.bulk_upsert("docs", [StoredRecord(id="1", content="a")])

    assert exc_info.value.failed_ids == ["2"]


@pytest.mark.asyncio
async def test_delete_missing_ids_is_not_an_error(engine, client) -> None:
    client.bulk.return_value = {
        "errors": True,
        "items": [{"delete": {"_id": "404", "status": 404, "result": "not_found", "error": {}}}],
    }

    await engine.delete_by_ids("docs", ["404"])

    actions = client.bulk.await_args.kwargs["body"]
    assert actions == [{"delete": {"_index": "docs", "_id": "404"}}]


@pytest.mark.asyncio
async def test_delete_all_uses_match_all(engine, client) -> None:
    await engine.delete_all("docs")

    kwargs = client.delete_by_query.await_args.kwargs
    assert kwargs["index"] == "docs"
    assert kwargs["body"] == {"query": {"match_all": {}}}


# ============================================================================
# Search
# ============================================================================


def test_knn_query_uses_scoring_script() -> None:
    body = build_knn_query([0.1, 0.2], SimilarityFunction.LINF, k=3, min_score=0.25)

    assert body["size"] == 3
    assert body["min_score"] == 0.25
    assert body["query"]["script_score"]["query"] == {"match_all": {}}
    script = body["query"]["script_score"]["script"]
    assert script["source"] == "knn_score"
    assert script["lang"] == "knn"
    assert script["params"] == {
        "field": "embedding",
        "query_value": [0.1, 0.2],
        "space_type": "linf",
    }


def test_knn_query_metadata_filter() -> None:
    body = build_knn_query([0.1], SimilarityFunction.COSINE, k=1, metadata_filter={"meta2": "meta2"})

    assert body["query"]["script_score"]["query"] == {
        "bool": {"filter": [{"term": {"metadata.meta2": "meta2"}}]}
    }


@pytest.mark.asyncio
async def test_knn_search_maps_hits(engine, client) -> None:
    client.search.return_value = {
        "hits": {
            "hits": [
                {"_id": "3", "_score": 1.8, "_source": {"content": "c", "metadata": {"meta2": "meta2"}}},
                {"_id": "1", "_score": 1.2, "_source": {"content": "a", "metadata": None}},
            ]
        }
    }

    hits = await engine.knn_search("docs", [0.1], SimilarityFunction.COSINE, k=2)

    assert [h.record.id for h in hits] == ["3", "1"]
    assert hits[0].raw_score == 1.8
    assert hits[0].record.metadata == {"meta2": "meta2"}
    assert hits[1].record.metadata == {}
    assert client.search.await_args.kwargs["index"] == "docs"


# ============================================================================
# Error translation
# ============================================================================


@pytest.mark.asyncio
async def test_missing_index_on_search(engine, client) -> None:
    client.search.side_effect = NotFoundError(404, "index_not_found_exception", {})

    with pytest.raises(IndexNotFoundError):
        await engine.knn_search("docs", [0.1], SimilarityFunction.COSINE, k=1)


@pytest.mark.asyncio
async def test_connection_error_is_engine_unavailable(engine, client) -> None:
    client.bulk.side_effect = OpenSearchConnectionError("N/A", "refused", Exception("refused"))

    with pytest.raises(EngineUnavailableError):
        await engine.bulk_upsert("docs", [StoredRecord(id="1", content="a")])


@pytest.mark.asyncio
async def test_server_error_is_engine_unavailable(engine, client) -> None:
    client.search.side_effect = TransportError(503, "unavailable", {})

    with pytest.raises(EngineUnavailableError):
        await engine.knn_search("docs", [0.1], SimilarityFunction.COSINE, k=1)


@pytest.mark.asyncio
async def test_close_closes_client(engine, client) -> None:
    await engine.close()

    client.close.assert_awaited_once()
