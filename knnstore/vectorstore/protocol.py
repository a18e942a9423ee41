"""
VectorStore Protocol (Interface)
Defines the public contract of the vector store facade
"""

from typing import Protocol, Sequence

from knnstore.vectorstore.schemas import Document, SearchRequest, SearchResult
from knnstore.vectorstore.similarity import SimilarityFunction


class VectorStoreProtocol(Protocol):
    """
    Protocol for vector store facades

    Writes are acknowledged before they are searchable; callers needing
    read-after-write must poll similarity_search.
    """

    async def add(self, documents: Sequence[Document]) -> None:
        """
        Embed and upsert documents (replace by id)

        Args:
            documents: Documents to store

        Raises:
            EmbeddingError: If any document could not be embedded
            IndexNotFoundError: If auto-create is disabled and the index is missing
        """
        ...

    async def delete(self, ids: str | Sequence[str]) -> None:
        """
        Delete documents by id, or all of them with "_all"

        Args:
            ids: Document ids, or the "_all" sentinel
        """
        ...

    async def similarity_search(self, request: SearchRequest | str) -> list[SearchResult]:
        """
        Search for similar documents

        Args:
            request: Search request, or plain query text with default top_k
                and threshold

        Returns:
            Results ordered by similarity (highest first)

        Raises:
            EmbeddingError: If the query could not be embedded
            IndexNotFoundError: If auto-create is disabled and the index is missing
        """
        ...

    def with_similarity_function(
        self, similarity_function: SimilarityFunction | str
    ) -> "VectorStoreProtocol":
        """
        Change the similarity function used by subsequent searches

        Stored vectors and the index mapping are left untouched.
        """
        ...
