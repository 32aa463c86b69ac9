from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Site Generation Orchestrator"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Database
    database_url: str
    database_migrations_url: str | None = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full
    database_statement_cache_size: int = 100

    # Auth (tokens are issued by the identity provider; we only verify them)
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        if v == "change-this-to-a-secure-random-string":
            raise ValueError(
                "JWT_SECRET_KEY must be changed from default value. "
                "Generate a secure secret with: openssl rand -hex 32"
            )
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    # Temporal
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_queue_prefix: str = "sitegen"
    temporal_queue_shards: int = 1
    pending_sweep_schedule: str | None = None  # Cron syntax, e.g. "*/5 * * * *"
    pending_sweep_batch_size: int = 50

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # LLM provider
    anthropic_api_key: str | None = None
    llm_model: str = "claude-sonnet-4-5"
    llm_max_tokens: int = 4096
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 120.0

    # Orchestration
    pass_score: float = 0.70
    max_retries: int = 3
    retry_base_delay_seconds: float = 1.0
    retry_backoff_multiplier: float = 2.0
    retry_max_delay_seconds: float = 10.0
    default_layer_timeout_seconds: float = 300.0
    long_layer_timeout_seconds: float = 1800.0
    max_parallel_agents: int = 5
    default_max_iterations: int = 3

    # Progress stream
    progress_poll_interval_seconds: float = 2.0
    progress_recent_agents: int = 50

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # Artifacts written by agents (local storage root)
    artifact_root: Path = Path("var/artifacts")

    @field_validator("pass_score")
    @classmethod
    def validate_pass_score(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("PASS_SCORE must be within [0, 1]")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
