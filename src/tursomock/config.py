"""Configuration for the mock server using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All server settings, loaded from ``TURSOMOCK_*`` env vars and a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TURSOMOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    db_dir: Path = Path("./db")
    default_database: str = "default"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    host: str = "0.0.0.0"
    port: int = 8080
    # Hostname advertised in management responses: <name>.<public_host>:<port>
    public_host: str = "localhost"
    cors_origins: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Path | None = None

    # ------------------------------------------------------------------
    # Observability: "off" (default), "otel" or "logfire"
    # ------------------------------------------------------------------
    observability: str = "off"
    otel_service_name: str = "tursomock"
    otel_exporter_otlp_endpoint: str = "http://localhost:4318"
    otel_console_exporter: bool = False

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.upper()

    def resolved_db_dir(self) -> Path:
        """Return the database directory as an absolute path."""
        return self.db_dir.expanduser().resolve()

    def host_name_for(self, db_name: str) -> str:
        """Hostname a client uses to reach *db_name* via subdomain routing."""
        return f"{db_name}.{self.public_host}:{self.port}"


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings singleton."""
    return Settings()
