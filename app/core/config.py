"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here, no scattered magic strings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        environment: Deployment environment. ``dev`` creates tables on startup.
        database_url: SQLAlchemy URL of the resource store.
        database_echo: Echo SQL statements through the SQLAlchemy logger.
        cors_allow_origins: Origins allowed by the CORS middleware.
        shutdown_timeout_seconds: Deadline after which shutdown is forced.
        max_request_size_bytes: Maximum allowed request body size.
        handle_process_signals: Install SIGTERM/SIGINT and fatal-fault hooks.
        host: Bind address used by ``python -m app``.
        port: Bind port used by ``python -m app``.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Resource API"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "dev"

    database_url: str = "sqlite:///./data.sqlite"
    database_echo: bool = False

    cors_allow_origins: list[str] = ["*"]
    max_request_size_bytes: int = 1_048_576  # 1 MB

    shutdown_timeout_seconds: float = 20.0
    handle_process_signals: bool = True

    host: str = "0.0.0.0"
    port: int = 3000


settings = Settings()
