"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Amped lifespan server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # "streamable-http" for network clients, "stdio" when launched by a host app.
    amped_transport: str = "streamable-http"
    # Default to loopback; opt into `0.0.0.0` explicitly for remote access.
    amped_host: str = "127.0.0.1"
    amped_port: int = 8001
    amped_log_level: str = "info"
    # Refuse non-loopback binds unless set (there is no auth layer).
    amped_allow_insecure_bind: bool = False

    # Storage (projection history + audit trail)
    db_path: str = "~/.amped/lifespan.db"
    persist_projections: bool = True

    # Formula constants
    # Optional YAML file overriding ImpactConstants / ProjectionConstants.
    constants_file: str = ""
    widen_interval_with_age: bool = False
    behavior_decay_rate: float = 0.02


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
