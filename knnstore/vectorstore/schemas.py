"""
VectorStore DTO definitions

Shared input/output types for the vector store, the document mapper and the
search engine boundary.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from knnstore.vectorstore.similarity import SimilarityFunction

# Engine-side field names
CONTENT_FIELD = "content"
METADATA_FIELD = "metadata"
EMBEDDING_FIELD = "embedding"

# Metadata key carrying the computed distance on search results
DISTANCE_METADATA_KEY = "distance"

# Sentinel accepted by delete() meaning "every document in the index"
ALL_DOCUMENTS = "_all"

DEFAULT_TOP_K = 4
SIMILARITY_THRESHOLD_ACCEPT_ALL = 0.0


class BaseSchema(BaseModel):
    """
    Base schema with common configuration
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=False,  # Return enum objects, not string values
    )


class Document(BaseSchema):
    """Caller-side document: text content plus scalar metadata."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: list[float] | None = None


class StoredRecord(BaseSchema):
    """Engine-side representation of a document."""

    id: str
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    embedding: list[float] = Field(default_factory=list)


class IndexConfig(BaseSchema):
    """Shape of a vector index, fixed once the index is created."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    dimension: int = Field(gt=0)
    similarity_function: SimilarityFunction = SimilarityFunction.COSINE

    @field_validator("similarity_function", mode="before")
    @classmethod
    def _parse_similarity(cls, value: Any) -> SimilarityFunction:
        return SimilarityFunction.parse(value)


class SearchRequest(BaseSchema):
    """Per-call similarity search parameters."""

    query: str | None = None
    query_vector: list[float] | None = None
    top_k: int = Field(default=DEFAULT_TOP_K, ge=1)
    similarity_threshold: float = Field(
        default=SIMILARITY_THRESHOLD_ACCEPT_ALL, ge=0.0, le=1.0
    )
    metadata_filter: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _exactly_one_query(self) -> "SearchRequest":
        if (self.query is None) == (self.query_vector is None):
            raise ValueError("Exactly one of query or query_vector must be set")
        return self

    @classmethod
    def for_text(cls, query: str, **kwargs: Any) -> "SearchRequest":
        return cls(query=query, **kwargs)

    @classmethod
    def for_vector(cls, query_vector: list[float], **kwargs: Any) -> "SearchRequest":
        return cls(query_vector=query_vector, **kwargs)


class SearchResult(BaseSchema):
    """
    Single similarity search hit

    Attributes:
        document: Matched document, metadata enriched with the distance key
        score: Normalized similarity (0.0 to 1.0, higher is more similar)
        distance: 1 - score
    """

    document: Document
    score: float
    distance: float


class EngineHit(BaseSchema):
    """Raw engine hit before score normalization."""

    record: StoredRecord
    raw_score: float
