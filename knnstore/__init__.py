"""
knnstore
Vector store adapter persisting documents with embeddings in a k-NN search engine
"""

from knnstore.vectorstore import (
    ALL_DOCUMENTS,
    DISTANCE_METADATA_KEY,
    Document,
    KnnVectorStore,
    SearchRequest,
    SearchResult,
    SimilarityFunction,
)

__all__ = [
    "KnnVectorStore",
    "Document",
    "SearchRequest",
    "SearchResult",
    "SimilarityFunction",
    "ALL_DOCUMENTS",
    "DISTANCE_METADATA_KEY",
]
