"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str | None = None

    # Cache
    redis_url: str | None = None
    query_embedding_cache_ttl_seconds: int = 300

    # Embeddings
    embedding_provider: str = "sentence_transformers"
    embedding_model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimensions: int = 384

    # Search
    search_timeout_seconds: float = 60.0
    search_default_limit: int = 5
    search_max_limit: int = 50
    search_default_match_threshold: float = 0.1

    # Ingestion
    chunk_max_chars: int = 400
    chunk_overlap_words: int = 20
    max_upload_bytes: int = 10 * 1024 * 1024

    # Blob storage
    blob_root: str = "./var/blobs"
    blob_signing_secret: str = "dev-only-blob-signing-secret"
    signed_url_ttl_seconds: int = 3600

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
