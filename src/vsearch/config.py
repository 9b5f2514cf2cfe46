"""Configuration loaded from environment / ``.env``.

Unlike a module-level singleton, :class:`Settings` is built once by the CLI
and handed to every collaborator that needs it.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionSettings(BaseModel):
    """The subset of settings consumed by the ingestion loop."""

    batch_size: int = Field(default=64, gt=0)
    target_tokens: int = Field(default=448, gt=0)
    max_tokens: int = Field(default=512, gt=0)
    case_type: str = "刑事案件"
    progress: int | None = Field(default=None, ge=0)
    aggregate_chunks: bool = True
    log_every: int = Field(default=10_000, gt=0)

    @model_validator(mode="after")
    def _check_token_budget(self) -> IngestionSettings:
        if self.target_tokens > self.max_tokens:
            raise ValueError(
                f"target_tokens ({self.target_tokens}) must be <= max_tokens ({self.max_tokens})"
            )
        return self


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Key-value store
    db_path: str = Field(default="cases.db", description="SQLite file holding the case and progress partitions")

    # Vector index
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    collection_name: str = "cases"
    distance_metric: str = Field(default="cosine", description="cosine | l2 | ip")

    # Embedding
    embedding_model: str = "BAAI/bge-small-zh-v1.5"

    # Ingestion
    batch_size: int = Field(default=64, gt=0)
    target_tokens: int = Field(default=448, gt=0, description="Rollback target once a chunk overflows")
    max_tokens: int = Field(default=512, gt=0, description="Hard token ceiling of the embedding model")
    case_type: str = Field(default="刑事案件", description="Only cases of this category are indexed")
    progress: int | None = Field(
        default=None,
        ge=0,
        description="Explicit resume point; takes precedence over the persisted checkpoint",
    )
    aggregate_chunks: bool = Field(
        default=True,
        description="Merge multi-chunk cases into one vector instead of one point per chunk",
    )
    log_every: int = Field(default=10_000, gt=0)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @model_validator(mode="after")
    def _check_token_budget(self) -> Settings:
        if self.target_tokens > self.max_tokens:
            raise ValueError(
                f"target_tokens ({self.target_tokens}) must be <= max_tokens ({self.max_tokens})"
            )
        return self

    def ingestion(self) -> IngestionSettings:
        """Project the ingestion-loop fields into an :class:`IngestionSettings`."""
        return IngestionSettings(
            batch_size=self.batch_size,
            target_tokens=self.target_tokens,
            max_tokens=self.max_tokens,
            case_type=self.case_type,
            progress=self.progress,
            aggregate_chunks=self.aggregate_chunks,
            log_every=self.log_every,
        )
