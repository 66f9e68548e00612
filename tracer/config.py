"""Tracer configuration: settings loaded from the environment."""

from typing import Literal

from pydantic_settings import BaseSettings

Environment = Literal["development", "test", "production"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Runtime
    environment: Environment = "development"
    log_level: str = "INFO"

    # Auth: empty = disabled (dev mode)
    tracer_api_key: str = ""

    # Database
    database_url: str = "sqlite:///data/tracer.db"

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:3000"

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 100

    # Request handling
    request_timeout_seconds: float = 10.0
    rate_limit_rpm: int = 120
    rate_limit_write_rpm: int = 60

    # API client (used by tracer.client)
    api_base_url: str = "http://localhost:8000/api/v1"
    api_timeout_seconds: float = 10.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
