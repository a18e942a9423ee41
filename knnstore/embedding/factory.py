"""
Embedding Provider Factory
Creates appropriate embedding provider based on configuration
"""

from knnstore.core.config import settings
from knnstore.core.exceptions import ConfigurationError
from knnstore.core.logging import get_logger
from knnstore.embedding.mock import MockEmbeddingProvider
from knnstore.embedding.ollama import OllamaEmbeddingProvider
from knnstore.embedding.protocol import EmbeddingProviderProtocol

logger = get_logger(__name__)


def get_embedding_provider(provider: str | None = None) -> EmbeddingProviderProtocol:
    """
    Get embedding provider implementation based on configuration

    Args:
        provider: Overrides settings.embedding_provider

    Returns:
        Embedding provider implementation

    Raises:
        ConfigurationError: If the provider is not supported
    """
    provider = provider or settings.embedding_provider

    logger.info("embedding_factory", provider=provider)

    if provider == "mock":
        return MockEmbeddingProvider(dimension=settings.mock_embedding_dimension)

    if provider == "ollama":
        return OllamaEmbeddingProvider()

    if provider == "sentence-transformers":
        # optional dependency, imported on demand
        from knnstore.embedding.sentence_transformer import (
            SentenceTransformerEmbeddingProvider,
        )

        return SentenceTransformerEmbeddingProvider()

    raise ConfigurationError(
        f"Unsupported embedding_provider: {provider}. "
        "Supported providers: mock, ollama, sentence-transformers"
    )
