"""
Query path: resolve the query vector, run the k-NN search, normalize
scores, apply the similarity threshold and map hits back to documents.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from knnstore.core.exceptions import DimensionMismatchError, EmbeddingError
from knnstore.core.logging import get_logger
from knnstore.vectorstore.mapper import from_record
from knnstore.vectorstore.schemas import IndexConfig, SearchRequest, SearchResult
from knnstore.vectorstore.similarity import (
    SimilarityFunction,
    normalize_score,
    threshold_to_raw,
)

if TYPE_CHECKING:
    from knnstore.embedding.protocol import EmbeddingProviderProtocol
    from knnstore.engine.protocol import SearchEngineProtocol

logger = get_logger(__name__)


class SimilaritySearcher:
    """Executes similarity searches against one engine."""

    def __init__(
        self,
        engine: "SearchEngineProtocol",
        embedding_provider: "EmbeddingProviderProtocol",
    ) -> None:
        self.engine = engine
        self.embedding_provider = embedding_provider

    async def search(
        self,
        config: IndexConfig,
        request: SearchRequest,
        similarity_function: SimilarityFunction,
    ) -> list[SearchResult]:
        """
        Run a similarity search.

        Args:
            config: Target index
            request: Query, top_k, threshold and optional metadata filter
            similarity_function: Space type used to score this query

        Returns:
            Results in engine rank order (most similar first); empty when
            nothing clears the threshold

        Raises:
            EmbeddingError: If the query text could not be embedded
            DimensionMismatchError: If the query vector does not fit the index
        """
        vector = await self._resolve_vector(request)
        if len(vector) != config.dimension:
            raise DimensionMismatchError(
                f"Query vector has {len(vector)} dimensions, index {config.name} "
                f"expects {config.dimension}"
            )

        hits = await self.engine.knn_search(
            config.name,
            vector,
            similarity_function,
            request.top_k,
            min_score=threshold_to_raw(similarity_function, request.similarity_threshold),
            metadata_filter=request.metadata_filter,
        )

        results: list[SearchResult] = []
        for hit in hits[: request.top_k]:
            score = normalize_score(similarity_function, hit.raw_score)
            if score < request.similarity_threshold:
                continue
            results.append(from_record(hit.record, score))

        logger.debug(
            "similarity_search_completed",
            index=config.name,
            similarity_function=similarity_function.value,
            top_k=request.top_k,
            threshold=request.similarity_threshold,
            hits=len(hits),
            results=len(results),
        )
        return results

    async def _resolve_vector(self, request: SearchRequest) -> list[float]:
        if request.query_vector is not None:
            return request.query_vector

        try:
            return await self.embedding_provider.embed_query(request.query)
        except EmbeddingError:
            logger.error("query_embedding_failed", query_length=len(request.query))
            raise
        except Exception as exc:
            logger.error("query_embedding_failed", error=str(exc))
            raise EmbeddingError(f"Failed to embed query: {exc}") from exc
