"""
Write path: embed-then-store upserts and deletes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from knnstore.core.exceptions import EmbeddingError
from knnstore.core.logging import get_logger
from knnstore.vectorstore.mapper import to_record
from knnstore.vectorstore.schemas import ALL_DOCUMENTS, Document, IndexConfig, StoredRecord

if TYPE_CHECKING:
    from knnstore.embedding.protocol import EmbeddingProviderProtocol
    from knnstore.engine.protocol import SearchEngineProtocol

logger = get_logger(__name__)


def is_delete_all(ids: str | Sequence[str]) -> bool:
    """True for the "_all" sentinel, alone or as the only list element."""
    if isinstance(ids, str):
        return ids == ALL_DOCUMENTS
    return len(ids) == 1 and ids[0] == ALL_DOCUMENTS


class DocumentWriter:
    """Batch upsert and delete against one engine."""

    def __init__(
        self,
        engine: "SearchEngineProtocol",
        embedding_provider: "EmbeddingProviderProtocol",
    ) -> None:
        self.engine = engine
        self.embedding_provider = embedding_provider

    async def add(self, config: IndexConfig, documents: Sequence[Document]) -> None:
        """
        Embed (where needed) and upsert documents in one bulk request.

        The batch is all-or-nothing at the call boundary: every document is
        embedded and mapped before anything is sent to the engine.

        Raises:
            EmbeddingError: If the provider fails for any document
            DimensionMismatchError: If a vector does not fit the index
            BulkWriteError: If the engine rejects any item
        """
        if not documents:
            return

        records: list[StoredRecord] = []
        for document in documents:
            embedding = document.embedding
            if embedding is None:
                embedding = await self._embed(document)
            records.append(to_record(document, embedding, config.dimension))

        await self.engine.bulk_upsert(config.name, records)
        logger.info("documents_added", index=config.name, count=len(records))

    async def delete(self, index: str, ids: str | Sequence[str]) -> None:
        """
        Delete documents by id, or every document for the "_all" sentinel.

        Ids that are not present are ignored.
        """
        if is_delete_all(ids):
            await self.engine.delete_all(index)
            logger.info("documents_deleted_all", index=index)
            return

        if isinstance(ids, str):
            ids = [ids]
        if not ids:
            return

        await self.engine.delete_by_ids(index, list(ids))
        logger.info("documents_deleted", index=index, count=len(ids))

    async def _embed(self, document: Document) -> list[float]:
        try:
            return await self.embedding_provider.embed(document.content)
        except EmbeddingError:
            logger.error("document_embedding_failed", doc_id=document.id)
            raise
        except Exception as exc:
            logger.error("document_embedding_failed", doc_id=document.id, error=str(exc))
            raise EmbeddingError(f"Failed to embed document {document.id}: {exc}") from exc
