"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("feedpress", description="Database name")
    user: str = Field("feedpress", description="Database user")
    dsn: Optional[str] = Field(None, description="Full connection string, overrides the fields above")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(
        "FEEDPRESS_DB_PASSWORD", description="Environment variable for password"
    )
    min_pool_size: int = Field(1, ge=1, description="Minimum pooled connections")
    max_pool_size: int = Field(10, ge=1, description="Maximum pooled connections")


class CacheConfig(BaseModel):
    """Global feed cache settings."""

    window_hours: float = Field(3.0, gt=0, description="How long a fetched URL stays fresh")
    article_limit: int = Field(100, ge=1, le=1000, description="Max articles per request")


class RefreshConfig(BaseModel):
    """Feed refresh fan-out settings."""

    fetch_timeout: float = Field(30.0, gt=0, description="Per-feed fetch timeout in seconds")
    max_concurrent: int = Field(5, ge=1, le=50, description="Concurrent fetches per request")
    user_agent: str = Field("feedpress/0.1 (+newsletter preparation)")


class TimeoutConfig(BaseModel):
    """Wall-clock budgets for request-shaped operations."""

    preview_seconds: float = Field(60.0, gt=0, description="Metadata-only preview")
    generate_seconds: float = Field(
        300.0, gt=0, description="Preparation, alone or followed by generation"
    )

    @field_validator("generate_seconds")
    @classmethod
    def validate_generate_budget(cls, v: float, info) -> float:
        """A full preparation can't get less time than a preview."""
        preview = info.data.get("preview_seconds", 60.0)
        if v < preview:
            raise ValueError(
                f"generate_seconds ({v}) must be >= preview_seconds ({preview})"
            )
        return v


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = Field("openai", description="LLM provider (openai, mock)")
    model: str = Field("gpt-4o-mini", description="Model name")
    api_key_env: Optional[str] = Field(
        "OPENAI_API_KEY", description="Environment variable for API key"
    )
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for API")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level for the feedpress logger")


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
