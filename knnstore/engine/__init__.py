"""
Search Engine Abstraction
Backends storing records with a k-NN vector field
"""

from knnstore.engine.protocol import SearchEngineProtocol
from knnstore.engine.memory import InMemorySearchEngine
from knnstore.engine.opensearch import OpenSearchEngine
from knnstore.engine.factory import get_search_engine

__all__ = [
    "SearchEngineProtocol",
    "InMemorySearchEngine",
    "OpenSearchEngine",
    "get_search_engine",
]
