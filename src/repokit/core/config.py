"""Core configuration management using pydantic-settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError


class Settings(BaseSettings):
    """Repository layer settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"

    # Database
    database_url: str = "sqlite+aiosqlite:///:memory:"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_echo: bool = False

    # Pagination
    default_page_size: int = 15
    max_page_size: int = 1000

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # OpenTelemetry
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "repokit"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def database_backend(self) -> str:
        """Dialect name of the configured database (e.g. "sqlite", "postgresql")."""
        try:
            return make_url(self.database_url).get_backend_name()
        except ArgumentError:
            return "unknown"


# Global settings instance
settings = Settings()
