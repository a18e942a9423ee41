"""
Local Sentence-Transformers Embedding Provider

Runs a local (E5 family by default) model. SentenceTransformer.encode() is
blocking, so every call is pushed to the default threadpool executor and
throttled by a semaphore to keep the event loop responsive.

Requires the optional `local` extra (sentence-transformers), imported when
the model is first loaded.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Optional

from knnstore.core.config import settings
from knnstore.core.exceptions import EmbeddingError
from knnstore.core.logging import get_logger

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

logger = get_logger(__name__)


class SentenceTransformerEmbeddingProvider:
    """
    Async-safe embedding provider over a local SentenceTransformer model.

    Key Features:
    - Lazy load: the model is loaded on first use (or by warmup())
    - Concurrency control: semaphore limits concurrent encode() calls
    - E5 prefixes: documents are embedded as "passage: ...", queries as
      "query: ..." when the model is E5
    """

    def __init__(
        self,
        *,
        model_name: str | None = None,
        device: str | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.model_name = model_name or settings.e5_model_name
        self.device = device or settings.embedding_device
        self.max_concurrency = max_concurrency or settings.embedding_max_concurrency
        self.model: Optional[SentenceTransformer] = None
        self._load_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info(
            "sentence_transformer_embedding_created",
            model_name=self.model_name,
            device=self.device,
            max_concurrency=self.max_concurrency,
        )

    async def warmup(self) -> None:
        """
        Load the model ahead of the first request.

        Raises:
            EmbeddingError: If model loading fails or times out
        """
        if self.model is not None:
            return

        async with self._load_lock:
            if self.model is not None:
                return

            t0 = time.perf_counter()
            loop = asyncio.get_running_loop()
            try:
                self.model = await asyncio.wait_for(
                    loop.run_in_executor(None, self._load_model),
                    timeout=300,  # model download
                )
            except asyncio.TimeoutError as exc:
                logger.error("sentence_transformer_load_timeout", model_name=self.model_name)
                raise EmbeddingError(
                    f"Timeout loading embedding model {self.model_name}"
                ) from exc
            except Exception as exc:
                logger.error(
                    "sentence_transformer_load_failed",
                    model_name=self.model_name,
                    error=str(exc),
                )
                raise EmbeddingError(
                    f"Failed to load embedding model {self.model_name}: {exc}"
                ) from exc

            logger.info(
                "sentence_transformer_loaded",
                model_name=self.model_name,
                elapsed_seconds=f"{time.perf_counter() - t0:.2f}",
            )

    async def embed(self, text: str) -> list[float]:
        """Embed a document passage ("passage: " prefix for E5 models)."""
        return await self._encode(self._prefixed("passage", text))

    async def embed_query(self, text: str) -> list[float]:
        """Embed a search query ("query: " prefix for E5 models)."""
        return await self._encode(self._prefixed("query", text))

    async def dimensions(self) -> int:
        await self.warmup()
        dimension = self.model.get_sentence_embedding_dimension()
        if dimension is None:
            dimension = len(await self.embed("dimension probe"))
        return dimension

    async def close(self) -> None:
        self.model = None

    # Internal helpers -------------------------------------------------

    def _load_model(self) -> "SentenceTransformer":
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name, device=self.device)

    def _prefixed(self, kind: str, text: str) -> str:
        if "e5" in self.model_name.lower():
            return f"{kind}: {text}"
        return text

    async def _encode(self, text: str) -> list[float]:
        await self.warmup()

        loop = asyncio.get_running_loop()
        model = self.model
        try:
            async with self._semaphore:
                embedding_array = await loop.run_in_executor(
                    None,
                    lambda: model.encode(text, normalize_embeddings=True),
                )
        except Exception as exc:
            logger.error("sentence_transformer_encode_failed", error=str(exc))
            raise EmbeddingError(f"Failed to embed text: {exc}") from exc

        embedding = [float(v) for v in embedding_array.tolist()]
        if not embedding:
            raise EmbeddingError("Model produced an empty embedding")
        return embedding
