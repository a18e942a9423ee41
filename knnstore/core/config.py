"""
Application Configuration
Pydantic Settings for environment-based configuration
"""

from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings from environment variables
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "knnstore"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"

    # Search engine
    engine_type: Literal["opensearch", "memory"] = "opensearch"
    opensearch_hosts: list[str] = Field(
        default_factory=lambda: ["http://localhost:9200"],
        description="OpenSearch node URLs",
    )
    opensearch_username: str | None = None
    opensearch_password: str | None = None
    opensearch_use_ssl: bool = False
    opensearch_verify_certs: bool = True
    opensearch_timeout: float = 30.0  # per-request timeout (seconds)

    # VectorStore
    vectorstore_index_name: str = "document-index"
    vectorstore_dimension: int | None = Field(
        default=None,
        gt=0,
        description="Vector dimension; None means ask the embedding provider",
    )
    vectorstore_similarity_function: str = "cosinesimil"
    vectorstore_auto_create_index: bool = True

    # Search defaults
    search_top_k: int = Field(default=4, ge=1)
    search_similarity_threshold: float = Field(default=0.0, ge=0.0, le=1.0)

    # Embedding provider
    embedding_provider: Literal["mock", "ollama", "sentence-transformers"] = "mock"

    # Ollama
    ollama_base_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "mxbai-embed-large"
    ollama_timeout: float = 60.0

    # Local sentence-transformers model (E5)
    e5_model_name: str = "intfloat/multilingual-e5-small"
    embedding_device: Literal["cpu", "cuda"] = "cpu"
    embedding_max_concurrency: int = 4  # threadpool limit for encode()

    # Mock provider
    mock_embedding_dimension: int = Field(default=256, gt=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False  # Structured JSON logging


# Global settings instance
settings = Settings()
