"""
OpenSearch search engine backend.

Talks to an OpenSearch cluster with the k-NN plugin through the async
opensearch-py client. Similarity search uses the exact k-NN scoring script
(`knn_score`), so the space type is chosen per query rather than baked into
the field mapping.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

from opensearchpy import AsyncOpenSearch
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
from knnstore.core.logging import get_logger
from knnstore.vectorstore.schemas import (
    CONTENT_FIELD,
    EMBEDDING_FIELD,
    METADATA_FIELD,
    EngineHit,
    StoredRecord,
)
from knnstore.vectorstore.similarity import SimilarityFunction

logger = get_logger(__name__)

INDEX_ALREADY_EXISTS = "resource_already_exists_exception"


class OpenSearchEngine:
    """OpenSearch-backed engine.

    The client is an external collaborator: build it with the transport
    options you need (hosts, auth, TLS, timeouts) and hand it in. The engine
    owns it from then on and closes it in close().
    """

    def __init__(self, client: AsyncOpenSearch) -> None:
        self.client = client

    async def get_index_mapping(self, index: str) -> dict[str, Any] | None:
        async with self._engine_errors("get_index_mapping", index):
            if not await self.client.indices.exists(index=index):
                return None
            response = await self.client.indices.get_mapping(index=index)

        # keyed by concrete index name, which differs from `index` for aliases
        for entry in response.values():
            return entry.get("mappings", {})
        return None

    async def create_index(self, index: str, body: dict[str, Any]) -> bool:
        async with self._engine_errors("create_index", index):
            try:
                await self.client.indices.create(index=index, body=body)
            except RequestError as exc:
                if exc.error != INDEX_ALREADY_EXISTS:
                    raise
                logger.info("opensearch_index_already_exists", index=index)
                return False

        logger.info("opensearch_index_created", index=index)
        return True

    async def bulk_upsert(self, index: str, records: Sequence[StoredRecord]) -> None:
        actions: list[dict[str, Any]] = []
        for record in records:
            actions.append({"index": {"_index": index, "_id": record.id}})
            actions.append(
                {
                    CONTENT_FIELD: record.content,
                    METADATA_FIELD: record.metadata,
                    EMBEDDING_FIELD: record.embedding,
                }
            )

        async with self._engine_errors("bulk_upsert", index):
            response = await self.client.bulk(body=actions)

        self._raise_for_bulk_errors(response, "index", index)
        logger.info("opensearch_bulk_upserted", index=index, count=len(records))

    async def delete_by_ids(self, index: str, ids: Sequence[str]) -> None:
        actions = [{"delete": {"_index": index, "_id": doc_id}} for doc_id in ids]

        async with self._engine_errors("delete_by_ids", index):
            response = await self.client.bulk(body=actions)

        self._raise_for_bulk_errors(response, "delete", index)
        logger.info("opensearch_bulk_deleted", index=index, count=len(ids))

    async def delete_all(self, index: str) -> None:
        async with self._engine_errors("delete_all", index):
            response = await self.client.delete_by_query(
                index=index,
                body={"query": {"match_all": {}}},
                conflicts="proceed",
            )
        logger.warning(
            "opensearch_index_cleared",
            index=index,
            deleted=response.get("deleted"),
        )

    async def knn_search(
        self,
        index: str,
        vector: Sequence[float],
        space_type: SimilarityFunction,
        k: int,
        min_score: float = 0.0,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[EngineHit]:
        body = build_knn_query(vector, space_type, k, min_score, metadata_filter)

        async with self._engine_errors("knn_search", index):
            response = await self.client.search(index=index, body=body)

        hits = response.get("hits", {}).get("hits", [])
        return [
            EngineHit(
                record=StoredRecord(
                    id=hit["_id"],
                    content=hit.get("_source", {}).get(CONTENT_FIELD, ""),
                    metadata=hit.get("_source", {}).get(METADATA_FIELD) or {},
                ),
                raw_score=float(hit.get("_score") or 0.0),
            )
            for hit in hits
        ]

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "OpenSearchEngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    # Internal helpers -------------------------------------------------

    @asynccontextmanager
    async def _engine_errors(self, operation: str, index: str) -> AsyncIterator[None]:
        """Translate opensearch-py exceptions into the vector store taxonomy."""
        try:
            yield
        except NotFoundError as exc:
            raise IndexNotFoundError(f"Index {index} does not exist") from exc
        except OpenSearchConnectionError as exc:
            logger.error("opensearch_unavailable", operation=operation, index=index, error=str(exc))
            raise EngineUnavailableError(f"OpenSearch unreachable during {operation}: {exc}") from exc
        except TransportError as exc:
            status = exc.status_code
            logger.error(
                "opensearch_request_failed",
                operation=operation,
                index=index,
                status=status,
                error=str(exc),
            )
            if isinstance(status, int) and status >= 500:
                raise EngineUnavailableError(
                    f"OpenSearch {operation} failed with status {status}: {exc}"
                ) from exc
            raise VectorStoreError(f"OpenSearch {operation} rejected: {exc}") from exc

    @staticmethod
    def _raise_for_bulk_errors(response: dict[str, Any], action: str, index: str) -> None:
        if not response.get("errors"):
            return

        failed: list[str] = []
        first_error: Any = None
        for item in response.get("items", []):
            result = item.get(action, {})
            # deleting a missing id reports 404 without being a failure
            if result.get("status") == 404 and action == "delete":
                continue
            if "error" in result:
                failed.append(str(result.get("_id")))
                if first_error is None:
                    first_error = result["error"]

        if not failed:
            return

        logger.error(
            "opensearch_bulk_failed",
            index=index,
            action=action,
            failed_count=len(failed),
            first_error=first_error,
        )
        raise BulkWriteError(
            f"OpenSearch bulk {action} rejected {len(failed)} item(s): {first_error}",
            failed_ids=failed,
        )


def build_knn_query(
    vector: Sequence[float],
    space_type: SimilarityFunction,
    k: int,
    min_score: float = 0.0,
    metadata_filter: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build an exact k-NN script_score search body."""
    if metadata_filter:
        candidates: dict[str, Any] = {
            "bool": {
                "filter": [
                    {"term": {f"{METADATA_FIELD}.{key}": value}}
                    for key, value in metadata_filter.items()
                ]
            }
        }
    else:
        candidates = {"match_all": {}}

    return {
        "size": k,
        "min_score": min_score,
        "_source": {"excludes": [EMBEDDING_FIELD]},
        "query": {
            "script_score": {
                "query": candidates,
                "script": {
                    "source": "knn_score",
                    "lang": "knn",
                    "params": {
                        "field": EMBEDDING_FIELD,
                        "query_value": list(vector),
                        "space_type": space_type.value,
                    },
                },
            }
        },
    }


def build_opensearch_client(
    hosts: list[str],
    *,
    username: str | None = None,
    password: str | None = None,
    use_ssl: bool = False,
    verify_certs: bool = True,
    timeout: float = 30.0,
) -> AsyncOpenSearch:
    """Create an async client from connection settings."""
    http_auth = (username, password) if username and password else None
    return AsyncOpenSearch(
        hosts=hosts,
        http_auth=http_auth,
        use_ssl=use_ssl,
        verify_certs=verify_certs,
        timeout=timeout,
    )
