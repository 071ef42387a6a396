from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Application
    APP_NAME: str = "Payments API"
    APP_VERSION: str = "1.0.0"
    APP_DEBUG: bool = True

    # Backend
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)
    SLOW_REQUEST_MS: float = 1000.0

    # Bearer tokens
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    JWT_ROLES_CLAIM: str = "roles"

    @property
    def is_production(self) -> bool:
        return not self.APP_DEBUG


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
