"""
Index Schema Manager

Bootstraps vector indices: create-if-absent with a k-NN vector field, and
refuse to touch an existing index whose shape differs from the requested
configuration.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from knnstore.core.exceptions import IndexNotFoundError, SchemaConflictError
from knnstore.core.logging import get_logger
from knnstore.vectorstore.schemas import (
    CONTENT_FIELD,
    EMBEDDING_FIELD,
    METADATA_FIELD,
    IndexConfig,
)
from knnstore.vectorstore.similarity import SimilarityFunction

if TYPE_CHECKING:
    from knnstore.engine.protocol import SearchEngineProtocol

logger = get_logger(__name__)


def build_index_body(config: IndexConfig) -> dict[str, Any]:
    """Settings and mappings for a new vector index."""
    return {
        "settings": {"index": {"knn": True}},
        "mappings": {
            "_meta": {
                "similarity_function": config.similarity_function.value,
                "dimension": config.dimension,
            },
            "dynamic_templates": [
                {
                    "metadata_strings": {
                        "path_match": f"{METADATA_FIELD}.*",
                        "match_mapping_type": "string",
                        "mapping": {"type": "keyword"},
                    }
                }
            ],
            "properties": {
                CONTENT_FIELD: {"type": "text"},
                METADATA_FIELD: {"type": "object"},
                EMBEDDING_FIELD: {
                    "type": "knn_vector",
                    "dimension": config.dimension,
                },
            },
        },
    }


class IndexSchemaManager:
    """
    Ensures vector indices exist with the expected shape.

    Successfully ensured configs are cached per index name for the lifetime
    of the manager; negative lookups are never cached.
    """

    def __init__(self, engine: "SearchEngineProtocol") -> None:
        self.engine = engine
        self._ensured: dict[str, IndexConfig] = {}
        self._lock = asyncio.Lock()

    async def ensure_index(self, config: IndexConfig) -> None:
        """
        Create the index if absent, otherwise validate its shape.

        Args:
            config: Requested index shape

        Raises:
            SchemaConflictError: If the index exists with another dimension
                or similarity function
        """
        cached = self._ensured.get(config.name)
        if cached is not None:
            self._check_same(cached, config)
            return

        async with self._lock:
            cached = self._ensured.get(config.name)
            if cached is not None:
                self._check_same(cached, config)
                return

            mapping = await self.engine.get_index_mapping(config.name)
            if mapping is None:
                created = await self.engine.create_index(config.name, build_index_body(config))
                if created:
                    logger.info(
                        "vector_index_created",
                        index=config.name,
                        dimension=config.dimension,
                        similarity_function=config.similarity_function.value,
                    )
                    self._ensured[config.name] = config
                    return
                # lost a creation race: validate whatever the winner created
                mapping = await self.engine.get_index_mapping(config.name)
                if mapping is None:
                    raise IndexNotFoundError(
                        f"Index {config.name} reported as existing but has no mapping"
                    )

            existing = self._config_from_mapping(config, mapping)
            self._check_same(existing, config)
            self._ensured[config.name] = config
            logger.debug("vector_index_ready", index=config.name)

    async def index_exists(self, name: str) -> bool:
        if name in self._ensured:
            return True
        return await self.engine.get_index_mapping(name) is not None

    async def require_index(self, name: str) -> None:
        """
        Raises:
            IndexNotFoundError: If the index does not exist
        """
        if not await self.index_exists(name):
            logger.warning("vector_index_missing", index=name)
            raise IndexNotFoundError(
                f"Index {name} does not exist and auto-create is disabled"
            )

    # Internal helpers -------------------------------------------------

    @staticmethod
    def _check_same(existing: IndexConfig, requested: IndexConfig) -> None:
        conflicts: list[str] = []
        if existing.dimension != requested.dimension:
            conflicts.append(f"dimension {existing.dimension} != {requested.dimension}")
        if existing.similarity_function is not requested.similarity_function:
            conflicts.append(
                f"similarity_function {existing.similarity_function.value} "
                f"!= {requested.similarity_function.value}"
            )
        if conflicts:
            logger.error("vector_index_schema_conflict", index=requested.name, conflicts=conflicts)
            raise SchemaConflictError(
                f"Index {requested.name} exists with an incompatible shape: "
                + "; ".join(conflicts)
            )

    @staticmethod
    def _config_from_mapping(requested: IndexConfig, mapping: dict[str, Any]) -> IndexConfig:
        """Read the live index shape; missing values fall back to the request."""
        field = mapping.get("properties", {}).get(EMBEDDING_FIELD)
        if field is None or field.get("type") != "knn_vector":
            raise SchemaConflictError(
                f"Index {requested.name} has no knn_vector field '{EMBEDDING_FIELD}'"
            )

        meta = mapping.get("_meta") or {}
        similarity = meta.get("similarity_function") or field.get("method", {}).get("space_type")
        return IndexConfig(
            name=requested.name,
            dimension=int(field.get("dimension", requested.dimension)),
            similarity_function=(
                SimilarityFunction.parse(similarity)
                if similarity
                else requested.similarity_function
            ),
        )
