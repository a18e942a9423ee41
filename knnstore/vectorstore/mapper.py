"""
Document <-> StoredRecord mapping.

The reserved distance key belongs to the store: a caller-supplied value is
dropped on write, and the engine-computed value always wins on read. Both
cases are logged.
"""

from __future__ import annotations

from typing import Sequence

from knnstore.core.exceptions import DimensionMismatchError
from knnstore.core.logging import get_logger
from knnstore.vectorstore.schemas import (
    DISTANCE_METADATA_KEY,
    Document,
    SearchResult,
    StoredRecord,
)

logger = get_logger(__name__)


def to_record(document: Document, embedding: Sequence[float], dimension: int) -> StoredRecord:
    """
    Build the engine-side record for a document.

    Args:
        document: Source document (not modified)
        embedding: Vector for the document content
        dimension: Configured index dimension

    Returns:
        StoredRecord with id/content/metadata copied verbatim

    Raises:
        DimensionMismatchError: If the vector length differs from dimension
    """
    if len(embedding) != dimension:
        raise DimensionMismatchError(
            f"Document {document.id} has a {len(embedding)}-dimensional embedding, "
            f"index expects {dimension}"
        )

    metadata = dict(document.metadata)
    if DISTANCE_METADATA_KEY in metadata:
        logger.warning(
            "reserved_metadata_key_dropped",
            doc_id=document.id,
            key=DISTANCE_METADATA_KEY,
        )
        del metadata[DISTANCE_METADATA_KEY]

    return StoredRecord(
        id=document.id,
        content=document.content,
        metadata=metadata,
        embedding=[float(v) for v in embedding],
    )


def from_record(record: StoredRecord, score: float) -> SearchResult:
    """
    Rebuild a caller document from an engine record and its normalized score.

    The returned document carries DISTANCE_METADATA_KEY = 1 - score.
    """
    distance = 1.0 - score
    metadata = dict(record.metadata)
    if DISTANCE_METADATA_KEY in metadata:
        logger.warning(
            "reserved_metadata_key_overwritten",
            doc_id=record.id,
            key=DISTANCE_METADATA_KEY,
        )
    metadata[DISTANCE_METADATA_KEY] = distance

    document = Document(id=record.id, content=record.content, metadata=metadata)
    return SearchResult(document=document, score=score, distance=distance)
