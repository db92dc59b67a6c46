"""Service configuration.

Loads settings from environment variables (prefix ``TEAREC_``) and an
optional ``.env`` file using pydantic-settings.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the recommender service."""

    model_config = SettingsConfigDict(
        env_prefix="TEAREC_",
        env_file=".env",
        extra="ignore",
    )

    # ----- Upstream -----
    persistence_url: str = Field(
        default="http://localhost:8080/tools.descartes.teastore.persistence/rest",
        description="Base URL of the persistence service REST API.",
    )
    peer_urls: List[str] = Field(
        default_factory=list,
        description="Base URLs of the other recommender replicas (excluding this one).",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for upstream and peer HTTP calls.",
    )

    # ----- Training -----
    pinned_max_time: Optional[int] = Field(
        default=None,
        description="Fixed training cutoff in epoch millis. Skips peer consensus when set.",
    )
    train_on_startup: bool = Field(
        default=False,
        description="Run one training round in a background thread at startup.",
    )

    # ----- Recommendation -----
    max_recommendations: int = Field(
        default=10,
        description="Maximum number of product ids returned per request.",
    )

    # ----- Server -----
    host: str = Field(default="0.0.0.0", description="Bind host.")
    port: int = Field(default=8000, description="Bind port.")
    log_level: str = Field(default="INFO", description="Root log level.")


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
