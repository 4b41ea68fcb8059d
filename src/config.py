"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "DORA Metrics"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_path: str = "./data/dora.db"

    # Authentication (GitHub OAuth + JWT session cookie)
    jwt_secret_key: SecretStr | None = None
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24
    github_oauth_client_id: str | None = None
    github_oauth_client_secret: SecretStr | None = None
    github_oauth_authorize_url: str = "https://github.com/login/oauth/authorize"
    github_oauth_token_url: str = "https://github.com/login/oauth/access_token"
    frontend_url: str = "http://localhost:3000"
    initial_admin_username: str | None = None  # Becomes ADMIN on first login
    default_repository_url: str | None = None  # Seeded when no repository exists

    # GitHub API
    github_api_url: str = "https://api.github.com"
    github_api_token: SecretStr | None = None
    github_organization_name: str | None = None
    github_timeout_seconds: float = 30.0

    # Datadog API
    datadog_base_url: str = "https://us5.datadoghq.com"
    datadog_api_key: SecretStr | None = None
    datadog_application_key: SecretStr | None = None
    datadog_timeout_seconds: float = 30.0

    # Circuit breaker
    circuit_breaker_fail_max: int = 5
    circuit_breaker_timeout: float = 60.0

    # Rate limiting (manual sync endpoints)
    rate_limit_requests: int = 10
    rate_limit_window: str = "minute"

    # Scheduled synchronization
    scheduler_enabled: bool = True
    commit_sync_interval_seconds: int = 3600
    commit_sync_initial_delay_seconds: int = 10
    pull_request_sync_interval_seconds: int = 300
    pull_request_sync_initial_delay_seconds: int = 20
    deployment_sync_interval_seconds: int = 300
    deployment_sync_initial_delay_seconds: int = 30
    incident_sync_interval_seconds: int = 3600
    incident_sync_initial_delay_seconds: int = 40

    # Observability
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str | None = None
    otel_console_export: bool = False
    otel_sample_rate: float = 1.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
