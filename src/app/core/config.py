from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Workroom"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Auth (tokens are issued by the identity service, we only verify them)
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
        """Reject wildcards - credentials are allowed on every route."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Redis (optional - app works without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    # Rate Limiting
    global_rate_limit_per_second: int = 10  # Max HTTP requests/second per IP
    global_rate_limit_burst: int = 20
    channel_send_rate_per_second: int = 5  # Max channel messages/second per user
    channel_send_burst: int = 10

    # Channel
    channel_outbound_queue_size: int = 256  # Per-connection backlog before it is dropped
    channel_close_timeout_seconds: float = 5.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
