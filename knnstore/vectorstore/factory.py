"""
VectorStore Factory
Creates a vector store wired from configuration
"""

from knnstore.core.config import settings
from knnstore.core.logging import get_logger
from knnstore.embedding.factory import get_embedding_provider
from knnstore.engine.factory import get_search_engine
from knnstore.vectorstore.store import KnnVectorStore

logger = get_logger(__name__)


def get_vectorstore(index_name: str | None = None) -> KnnVectorStore:
    """
    Get a vector store built from settings

    Args:
        index_name: Name of the index to use (default: settings.vectorstore_index_name)

    Returns:
        KnnVectorStore over the configured engine and embedding provider

    Raises:
        ConfigurationError: If the engine type, provider or similarity
            function is not supported

    Usage:
        store = get_vectorstore()
        other = get_vectorstore("another_index")
    """
    index_name = index_name or settings.vectorstore_index_name

    logger.info(
        "vectorstore_factory",
        index_name=index_name,
        engine_type=settings.engine_type,
        embedding_provider=settings.embedding_provider,
    )

    return KnnVectorStore(
        get_search_engine(),
        get_embedding_provider(),
        index_name=index_name,
        dimension=settings.vectorstore_dimension,
        similarity_function=settings.vectorstore_similarity_function,
        auto_create_index=settings.vectorstore_auto_create_index,
    )


# Singleton instance for dependency injection
_default_vectorstore: KnnVectorStore | None = None


def get_default_vectorstore() -> KnnVectorStore:
    """
    Get singleton VectorStore instance for the default index

    Returns:
        VectorStore for settings.vectorstore_index_name
    """
    global _default_vectorstore
    if _default_vectorstore is None:
        _default_vectorstore = get_vectorstore()
    return _default_vectorstore
