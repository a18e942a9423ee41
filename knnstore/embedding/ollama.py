"""
Ollama Embedding Provider

Talks to a local Ollama server (mxbai-embed-large etc.) and returns the
embedding vector for a text.
"""

from __future__ import annotations

import httpx

from knnstore.core.config import settings
from knnstore.core.exceptions import EmbeddingError
from knnstore.core.logging import get_logger

logger = get_logger(__name__)

# Output sizes of common Ollama embedding models
KNOWN_DIMENSIONS: dict[str, int] = {
    "mxbai-embed-large": 1024,
    "nomic-embed-text": 768,
    "all-minilm": 384,
    "snowflake-arctic-embed": 1024,
    "bge-m3": 1024,
}


class OllamaEmbeddingProvider:
    """Ollama-backed embedding provider."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.model = model or settings.ollama_embedding_model
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.ollama_timeout,
        )
        self._dimension: int | None = None
        logger.info("ollama_embedding_initialized", base_url=self.base_url, model=self.model)

    async def embed(self, text: str) -> list[float]:
        payload = {"model": self.model, "input": text}

        try:
            resp = await self._client.post("/api/embed", json=payload)
        except httpx.HTTPError as exc:
            logger.error("ollama_embedding_request_failed", model=self.model, error=str(exc))
            raise EmbeddingError(f"Ollama embedding request failed: {exc}") from exc

        if resp.status_code >= 400:
            logger.error(
                "ollama_embedding_bad_status",
                model=self.model,
                status=resp.status_code,
            )
            raise EmbeddingError(f"Ollama embedding error: {resp.status_code} {resp.text}")

        try:
            data = resp.json()
            embedding = [float(v) for v in data["embeddings"][0]]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise EmbeddingError(f"Invalid Ollama embedding response: {exc}") from exc

        if not embedding:
            raise EmbeddingError("Ollama returned an empty embedding")

        logger.debug("ollama_text_embedded", text_length=len(text), embedding_dim=len(embedding))
        return embedding

    async def embed_query(self, text: str) -> list[float]:
        return await self.embed(text)

    async def dimensions(self) -> int:
        if self._dimension is None:
            base_name = self.model.split(":", 1)[0]
            known = KNOWN_DIMENSIONS.get(base_name)
            if known is None:
                # unknown model: ask the server once
                known = len(await self.embed("dimension probe"))
            self._dimension = known
        return self._dimension

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "OllamaEmbeddingProvider":
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self._client.__aexit__(exc_type, exc, tb)
