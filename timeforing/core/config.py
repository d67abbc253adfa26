from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Timeføring"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    DB_URL: str = Field(default="sqlite:///./timeforing.db", validation_alias="DATABASE_URL")

    JWT_SECRET: str = "dev-insecure-secret-change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "mock-issuer"
    JWT_TTL_HOURS: int = 12
    MOCK_AUTH_ENABLED: bool = True

    # Comma separated; kept as a plain string so env values need no JSON quoting.
    ALLOWED_ORIGINS: str = "http://localhost:5173"

    HOST: str = "0.0.0.0"
    PORT: int = 8080

    @property
    def is_sqlite(self) -> bool:
        return self.DB_URL.startswith("sqlite")

    @property
    def allowed_origins(self) -> list[str]:
        return [item.strip() for item in self.ALLOWED_ORIGINS.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
