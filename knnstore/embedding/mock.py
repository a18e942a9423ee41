"""
Mock Embedding Provider
Deterministic embeddings for development and testing without a model server
"""

import asyncio
import hashlib
import math
import re

from knnstore.core.logging import get_logger

logger = get_logger(__name__)

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


class MockEmbeddingProvider:
    """
    Feature-hashing bag-of-words embedder.

    Each lowercase token is hashed into one of `dimension` buckets and the
    resulting count vector is L2-normalized, so texts sharing words end up
    close under every supported similarity function.
    """

    def __init__(self, dimension: int = 256):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        logger.info("mock_embedding_initialized", dimension=dimension)

    async def embed(self, text: str) -> list[float]:
        await asyncio.sleep(0)

        vector = [0.0] * self.dimension
        for token in _TOKEN_PATTERN.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            vector[int.from_bytes(digest[:4], "big") % self.dimension] += 1.0

        norm = math.sqrt(sum(v * v for v in vector))
        if norm > 0:
            vector = [v / norm for v in vector]

        logger.debug("mock_text_embedded", text_length=len(text))
        return vector

    async def embed_query(self, text: str) -> list[float]:
        return await self.embed(text)

    async def dimensions(self) -> int:
        return self.dimension

    async def close(self) -> None:
        return None
