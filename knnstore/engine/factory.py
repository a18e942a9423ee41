"""
Search Engine Factory
Creates the configured search engine backend
"""

from knnstore.core.config import settings
from knnstore.core.exceptions import ConfigurationError
from knnstore.core.logging import get_logger
from knnstore.engine.memory import InMemorySearchEngine
from knnstore.engine.opensearch import OpenSearchEngine, build_opensearch_client
from knnstore.engine.protocol import SearchEngineProtocol

logger = get_logger(__name__)


def get_search_engine(engine_type: str | None = None) -> SearchEngineProtocol:
    """
    Get search engine implementation based on configuration

    Args:
        engine_type: Overrides settings.engine_type

    Raises:
        ConfigurationError: If engine_type is not supported
    """
    engine_type = engine_type or settings.engine_type

    logger.info("search_engine_factory", engine_type=engine_type)

    if engine_type == "memory":
        return InMemorySearchEngine()

    if engine_type == "opensearch":
        client = build_opensearch_client(
            settings.opensearch_hosts,
            username=settings.opensearch_username,
            password=settings.opensearch_password,
            use_ssl=settings.opensearch_use_ssl,
            verify_certs=settings.opensearch_verify_certs,
            timeout=settings.opensearch_timeout,
        )
        return OpenSearchEngine(client)

    raise ConfigurationError(
        f"Unsupported engine_type: {engine_type}. Supported types: opensearch, memory"
    )
