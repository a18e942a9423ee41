"""
VectorStore
Document storage and similarity search over a k-NN index
"""

from knnstore.vectorstore.protocol import VectorStoreProtocol
from knnstore.vectorstore.schemas import (
    ALL_DOCUMENTS,
    DISTANCE_METADATA_KEY,
    Document,
    IndexConfig,
    SearchRequest,
    SearchResult,
)
from knnstore.vectorstore.similarity import SimilarityFunction
from knnstore.vectorstore.store import KnnVectorStore

__all__ = [
    "VectorStoreProtocol",
    "KnnVectorStore",
    "Document",
    "IndexConfig",
    "SearchRequest",
    "SearchResult",
    "SimilarityFunction",
    "ALL_DOCUMENTS",
    "DISTANCE_METADATA_KEY",
]
