"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Contract addresses and RPC endpoints come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process
    - An empty chain_rpc_url disables the ledger connection and the synchronizer

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://craft:craft@db:5432/craft"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Ledger
    chain_rpc_url: str = ""
    chain_token_contract: str = ""
    chain_workbench_contract: str | None = None
    chain_poll_interval_seconds: float = 2.0
    chain_read_max_retries: int = 2
    chain_read_base_delay_ms: int = 500
    chain_read_max_delay_ms: int = 10_000

    # Synchronizer
    sync_enabled: bool = True
    sync_worker_count: int = 4
    sync_queue_size: int = 1000
    sync_dead_letter_size: int = 100

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
