"""
Embedding Provider Protocol (Interface)
Defines contract for all embedding implementations
"""

from typing import Protocol


class EmbeddingProviderProtocol(Protocol):
    """
    Protocol for embedding providers

    Implementations turn text into a fixed-length float vector. Every
    provider-side failure (network, model, invalid output) is raised as
    EmbeddingError.
    """

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text

        Args:
            text: Text to embed

        Returns:
            Embedding vector of length dimensions()

        Raises:
            EmbeddingError: If the provider could not produce a vector
        """
        ...

    async def embed_query(self, text: str) -> list[float]:
        """
        Embed a search query

        Asymmetric models (E5) encode queries differently from stored
        documents; symmetric providers return the same vector as embed().

        Raises:
            EmbeddingError: If the provider could not produce a vector
        """
        ...

    async def dimensions(self) -> int:
        """
        Native output size of the provider's model

        Raises:
            EmbeddingError: If the dimension cannot be determined
        """
        ...

    async def close(self) -> None:
        """Release provider resources"""
        ...
