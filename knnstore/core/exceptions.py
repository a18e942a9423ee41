"""
Custom Exceptions for knnstore
"""


class KnnStoreException(Exception):
    """Base exception for all knnstore errors"""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ConfigurationError(KnnStoreException):
    """Unsupported or inconsistent configuration value"""

    pass


# VectorStore Exceptions
class VectorStoreError(KnnStoreException):
    """VectorStore operation failed"""

    pass


class EmbeddingError(VectorStoreError):
    """Embedding provider could not produce a vector"""

    pass


class SchemaConflictError(VectorStoreError):
    """Existing index shape is incompatible with the requested configuration"""

    pass


class IndexNotFoundError(VectorStoreError):
    """Target index does not exist and auto-create is disabled"""

    pass


class EngineUnavailableError(VectorStoreError):
    """Transport or network failure talking to the search engine"""

    pass


class DimensionMismatchError(VectorStoreError):
    """Vector length differs from the index dimension"""

    pass


class BulkWriteError(VectorStoreError):
    """Engine rejected one or more items of a bulk request"""

    def __init__(self, message: str, failed_ids: list[str] | None = None):
        self.failed_ids = failed_ids or []
        super().__init__(message)
