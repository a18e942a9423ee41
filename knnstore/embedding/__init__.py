"""
Embedding Provider Abstraction
Interface and implementations turning text into vectors
"""

from knnstore.embedding.protocol import EmbeddingProviderProtocol
from knnstore.embedding.factory import get_embedding_provider

__all__ = ["EmbeddingProviderProtocol", "get_embedding_provider"]
