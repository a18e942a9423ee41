"""
k-NN VectorStore facade.

Composes the index schema manager, the write path and the query path over a
search engine and an embedding provider. The engine is the source of truth:
the store keeps no copy of index contents, only its configuration.

Similarity function scope: the function given at construction is the one the
index is created with (recorded in the index mapping and validated on every
bootstrap). with_similarity_function() only changes how later queries are
scored, which works because searches use the exact k-NN scoring script with a
per-query space type. Stored vectors are never re-encoded.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Sequence

from knnstore.core.config import settings
from knnstore.core.logging import get_logger, measure_latency
from knnstore.vectorstore.query import SimilaritySearcher
from knnstore.vectorstore.schema_manager import IndexSchemaManager
from knnstore.vectorstore.schemas import Document, IndexConfig, SearchRequest, SearchResult
from knnstore.vectorstore.similarity import SimilarityFunction
from knnstore.vectorstore.writer import DocumentWriter

if TYPE_CHECKING:
    from knnstore.embedding.protocol import EmbeddingProviderProtocol
    from knnstore.engine.protocol import SearchEngineProtocol

logger = get_logger(__name__)


class KnnVectorStore:
    """
    Vector store over a k-NN capable search engine.

    Args:
        engine: Search engine backend
        embedding_provider: Text -> vector provider
        index_name: Target index (default: settings.vectorstore_index_name)
        dimension: Vector dimension (default: the provider's native size)
        similarity_function: Index similarity function (default: cosinesimil)
        auto_create_index: Create the index on first use when absent
    """

    def __init__(
        self,
        engine: "SearchEngineProtocol",
        embedding_provider: "EmbeddingProviderProtocol",
        *,
        index_name: str | None = None,
        dimension: int | None = None,
        similarity_function: SimilarityFunction | str | None = None,
        auto_create_index: bool | None = None,
    ) -> None:
        if dimension is not None and dimension <= 0:
            raise ValueError("dimension must be positive")

        self.engine = engine
        self.embedding_provider = embedding_provider
        self._index_name = index_name or settings.vectorstore_index_name
        self._dimension = dimension
        self._index_similarity = SimilarityFunction.parse(
            similarity_function or settings.vectorstore_similarity_function
        )
        self._search_similarity = self._index_similarity
        self.auto_create_index = (
            settings.vectorstore_auto_create_index
            if auto_create_index is None
            else auto_create_index
        )

        self.schema_manager = IndexSchemaManager(engine)
        self.writer = DocumentWriter(engine, embedding_provider)
        self.searcher = SimilaritySearcher(engine, embedding_provider)
        self._config: IndexConfig | None = None
        self._config_lock = asyncio.Lock()

        logger.info(
            "vectorstore_initialized",
            index=self._index_name,
            dimension=dimension,
            similarity_function=self._index_similarity.value,
            auto_create_index=self.auto_create_index,
        )

    @property
    def index_name(self) -> str:
        return self._index_name

    @property
    def similarity_function(self) -> SimilarityFunction:
        """Function scoring subsequent searches."""
        return self._search_similarity

    @property
    def index_similarity_function(self) -> SimilarityFunction:
        """Function the index is created and validated with."""
        return self._index_similarity

    async def index_config(self) -> IndexConfig:
        """Resolve the index configuration, asking the provider for the dimension once."""
        if self._config is not None:
            return self._config

        async with self._config_lock:
            if self._config is None:
                dimension = self._dimension
                if dimension is None:
                    dimension = await self.embedding_provider.dimensions()
                self._config = IndexConfig(
                    name=self._index_name,
                    dimension=dimension,
                    similarity_function=self._index_similarity,
                )
        return self._config

    @measure_latency("vectorstore_add")
    async def add(self, documents: Sequence[Document]) -> None:
        if not documents:
            return
        config = await self._prepare()
        await self.writer.add(config, documents)

    @measure_latency("vectorstore_delete")
    async def delete(self, ids: str | Sequence[str]) -> None:
        if not await self.schema_manager.index_exists(self._index_name):
            logger.info("vectorstore_delete_skipped_missing_index", index=self._index_name)
            return
        await self.writer.delete(self._index_name, ids)

    @measure_latency("vectorstore_similarity_search")
    async def similarity_search(self, request: SearchRequest | str) -> list[SearchResult]:
        if isinstance(request, str):
            request = SearchRequest.for_text(
                request,
                top_k=settings.search_top_k,
                similarity_threshold=settings.search_similarity_threshold,
            )
        config = await self._prepare()
        return await self.searcher.search(config, request, self._search_similarity)

    def with_similarity_function(
        self, similarity_function: SimilarityFunction | str
    ) -> "KnnVectorStore":
        self._search_similarity = SimilarityFunction.parse(similarity_function)
        logger.info(
            "vectorstore_search_similarity_changed",
            index=self._index_name,
            similarity_function=self._search_similarity.value,
            index_similarity_function=self._index_similarity.value,
        )
        return self

    async def close(self) -> None:
        await self.engine.close()
        await self.embedding_provider.close()

    async def __aenter__(self) -> "KnnVectorStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    # Internal helpers -------------------------------------------------

    async def _prepare(self) -> IndexConfig:
        config = await self.index_config()
        if self.auto_create_index:
            await self.schema_manager.ensure_index(config)
        else:
            await self.schema_manager.require_index(config.name)
        return config
