"""
Application Settings
Load from environment variables
"""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ADVICE_CONFIG = Path(__file__).resolve().parent / "advice.yml"


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # ======================
    # Collaborators
    # ======================
    MARKET_API_BASE_URL: str = "http://localhost:3000/api"
    PORTFOLIO_API_BASE_URL: str = "http://localhost:3000/api"
    API_TOKEN: Optional[str] = None
    HTTP_TIMEOUT_SECONDS: float = 15.0
    COLLABORATOR_TIMEOUT_SECONDS: float = 10.0

    # ======================
    # Notifications
    # ======================
    NOTIFICATIONS_ENABLED: bool = False
    NOTIFICATION_WEBHOOK_URL: Optional[str] = None

    # ======================
    # Advice cache
    # ======================
    ADVICE_CACHE_ENABLED: bool = True
    ADVICE_CACHE_TTL_SECONDS: int = 300
    ADVICE_CACHE_MAX_ENTRIES: int = 256

    # ======================
    # Business configuration
    # ======================
    ADVICE_CONFIG_PATH: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("HTTP_TIMEOUT_SECONDS", "COLLABORATOR_TIMEOUT_SECONDS", "ADVICE_CACHE_TTL_SECONDS", "ADVICE_CACHE_MAX_ENTRIES")
    @classmethod
    def _must_be_positive(cls, value):
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def advice_config_path(self) -> Path:
        if self.ADVICE_CONFIG_PATH:
            return Path(self.ADVICE_CONFIG_PATH)
        return DEFAULT_ADVICE_CONFIG


settings = Settings()
