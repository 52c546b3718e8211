from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_SECRETS = frozenset({"your-secret-key", "change-this-to-a-secure-random-string"})

SslMode = Literal["disable", "prefer", "require", "verify-ca", "verify-full"]


class Settings(BaseSettings):
    """Process configuration read from the environment and an optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Pureflow Campaign Dashboard"
    app_env: Literal["development", "testing", "production"] = "development"
    debug: bool = False
    enable_openapi: bool = True
    cors_origins: list[str] = ["http://localhost:3000"]

    database_url: str
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=10, ge=0)
    database_ssl_mode: SslMode = "prefer"

    # Signing and lifetimes
    jwt_secret_key: str = Field(min_length=32)
    jwt_algorithm: Literal["HS256"] = "HS256"
    access_token_expire_seconds: int = Field(default=3600, gt=0)
    access_token_remember_seconds: int = Field(default=7 * 24 * 3600, gt=0)
    refresh_token_expire_days: int = Field(default=7, gt=0)
    refresh_token_remember_days: int = Field(default=30, gt=0)

    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 1

    access_cookie_name: str = "auth_token"
    refresh_cookie_name: str = "refresh_token"
    # Unset means secure cookies in production only
    cookie_secure: bool | None = None

    redis_url: str | None = None
    redis_pool_size: int = 10

    metrics_api_key: str | None = None

    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "token-cleanup-queue"
    cleanup_schedule: str | None = None  # cron, e.g. "0 3 * * *"
    cleanup_retention_days: int = Field(default=30, ge=0)

    @field_validator("jwt_secret_key")
    @classmethod
    def reject_placeholder_secret(cls, v: str) -> str:
        if v in PLACEHOLDER_SECRETS:
            raise ValueError(
                "JWT_SECRET_KEY must be changed from the example value "
                "(openssl rand -hex 32 gives a usable one)"
            )
        return v

    @field_validator("cors_origins")
    @classmethod
    def reject_wildcard_origin(cls, v: list[str]) -> list[str]:
        if "*" in v:
            raise ValueError("CORS wildcard '*' cannot be combined with credentialed cookies")
        return v

    @model_validator(mode="after")
    def resolve_cookie_secure(self) -> Self:
        if self.cookie_secure is None:
            self.cookie_secure = self.app_env == "production"
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
