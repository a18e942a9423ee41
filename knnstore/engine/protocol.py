"""
Search Engine Protocol (Interface)
Defines the engine operations the vector store depends on
"""

from typing import Any, Protocol, Sequence

from knnstore.vectorstore.schemas import EngineHit, StoredRecord
from knnstore.vectorstore.similarity import SimilarityFunction


class SearchEngineProtocol(Protocol):
    """
    Protocol for search engine backends

    Implementations: OpenSearchEngine (remote, k-NN plugin) and
    InMemorySearchEngine (development/testing). Writes are acknowledged
    before they become visible to searches.
    """

    async def get_index_mapping(self, index: str) -> dict[str, Any] | None:
        """
        Fetch the mapping of an index

        Args:
            index: Index name

        Returns:
            The index "mappings" section, or None if the index does not exist

        Raises:
            EngineUnavailableError: If the engine cannot be reached
        """
        ...

    async def create_index(self, index: str, body: dict[str, Any]) -> bool:
        """
        Create an index with settings and mappings

        Args:
            index: Index name
            body: {"settings": ..., "mappings": ...}

        Returns:
            True if this call created the index, False if it already existed
        """
        ...

    async def bulk_upsert(self, index: str, records: Sequence[StoredRecord]) -> None:
        """
        Insert or replace records by id in one request

        Raises:
            BulkWriteError: If the engine rejected any item
            IndexNotFoundError: If the index does not exist
        """
        ...

    async def delete_by_ids(self, index: str, ids: Sequence[str]) -> None:
        """
        Delete records by id; ids that do not exist are ignored

        Raises:
            BulkWriteError: If the engine rejected any item
        """
        ...

    async def delete_all(self, index: str) -> None:
        """
        Delete every record of an index (delete-by-query match_all)
        """
        ...

    async def knn_search(
        self,
        index: str,
        vector: Sequence[float],
        space_type: SimilarityFunction,
        k: int,
        min_score: float = 0.0,
        metadata_filter: dict[str, Any] | None = None,
    ) -> list[EngineHit]:
        """
        Exact k-NN search scored with the given space type

        Args:
            index: Index name
            vector: Query vector
            space_type: Similarity function used for scoring
            k: Maximum number of hits
            min_score: Raw-scale score floor
            metadata_filter: Exact-match filters on metadata keys

        Returns:
            Hits ordered by raw score, highest first

        Raises:
            IndexNotFoundError: If the index does not exist
        """
        ...

    async def close(self) -> None:
        """Release transport resources"""
        ...
