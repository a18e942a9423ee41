"""
In-memory search engine
Development/testing backend with the same scoring and visibility model as
the OpenSearch k-NN plugin.

Writes are acknowledged immediately but only become searchable once
`refresh_interval` seconds have elapsed, mirroring the engine's periodic
index refresh. With the default interval of 0 they are visible at once.
"""

from __future__ import annotations

import asyncio
import copy
import time
from collections import deque
from typing import Any, Sequence

from knnstore.core.exceptions import IndexNotFoundError
from knnstore.core.logging import get_logger
from knnstore.vectorstore.schemas import EngineHit, StoredRecord
from knnstore.vectorstore.similarity import SimilarityFunction, raw_score

logger = get_logger(__name__)


class _MemoryIndex:
    def __init__(self, mappings: dict[str, Any]) -> None:
        self.mappings = mappings
        self.records: dict[str, StoredRecord] = {}
        # (visible_at, op, payload) in submission order
        self.pending: deque[tuple[float, str, Any]] = deque()

    def refresh(self, now: float) -> None:
        while self.pending and self.pending[0][0] <= now:
            _, op, payload = self.pending.popleft()
            if op == "upsert":
                self.records[payload.id] = payload
            elif op == "delete":
                self.records.pop(payload, None)
            elif op == "clear":
                self.records.clear()


class InMemorySearchEngine:
    """
    Search engine backed by a dictionary of indices.

    Index existence and mappings are immediately consistent; document
    writes follow the refresh interval.
    """

    def __init__(self, refresh_interval: float = 0.0) -> None:
        self.refresh_interval = refresh_interval
        self._indices: dict[str, _MemoryIndex] = {}
        self._create_lock = asyncio.Lock()
        logger.info("memory_engine_initialized", refresh_interval=refresh_interval)

    async def get_index_mapping(self, index: str) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        memory_index = self._indices.get(index)
        if memory_index is None:
            return None
        return copy.deepcopy(memory_index.mappings)

    async def create_index(self, index: str, body: dict[str, Any]) -> bool:
        async with self._create_lock:
            if index in self._indices:
                return False
            self._indices[index] = _MemoryIndex(copy.deepcopy(body.get("mappings", {})))
        logger.info("memory_index_created", index=index)
        return True

    async def bulk_upsert(self, index: str, records: Sequence[StoredRecord]) -> None:
        memory_index = self._get(index)
        visible_at = self._visible_at()
        for record in records:
            memory_index.pending.append((visible_at, "upsert", record.model_copy(deep=True)))
        logger.debug("memory_bulk_upsert", index=index, count=len(records))

    async def delete_by_ids(self, index: str, ids: Sequence[str]) -> None:
        memory_index = self._get(index)
        visible_at = self._visible_at()
        for doc_id in ids:
            memory_index.pending.append((visible_at, "delete", doc_id))
        logger.debug("memory_bulk_delete", index=index, count=len(ids))

    async def delete_all(self, index: str) -> None:
        memory_index = self._get(index)
        memory_index.pending.append((self._visible_at(), "clear", None))
        logger.debug("memory_delete_all", index=index)

    async def knn_search(
        self,
        index: str,
        vector: Sequence[float],
        space_type: SimilarityFunction,
        k: int,
        min_score: float = 0.0,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[EngineHit]:
        await asyncio.sleep(0)
        memory_index = self._get(index)
        memory_index.refresh(time.monotonic())

        hits: list[EngineHit] = []
        for record in memory_index.records.values():
            if metadata_filter and any(
                record.metadata.get(key) != value for key, value in metadata_filter.items()
            ):
                continue
            score = raw_score(space_type, vector, record.embedding)
            if score < min_score:
                continue
            hits.append(EngineHit(record=record.model_copy(deep=True), raw_score=score))

        # stable: equal scores keep insertion order
        hits.sort(key=lambda hit: hit.raw_score, reverse=True)
        return hits[:k]

    async def close(self) -> None:
        self._indices.clear()

    # Internal helpers -------------------------------------------------

    def _get(self, index: str) -> _MemoryIndex:
        memory_index = self._indices.get(index)
        if memory_index is None:
            raise IndexNotFoundError(f"Index {index} does not exist")
        return memory_index

    def _visible_at(self) -> float:
        return time.monotonic() + self.refresh_interval
