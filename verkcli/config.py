# verkcli/config.py
"""
Process-level configuration using Pydantic-Settings.
Values come from environment variables or a .env file and override whatever
the selected profile in the JSON config file says (see services/profile_service.py).
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── API connection ────────────────────────────────────────────────────
    BASE_URL: Optional[str] = Field(None, validation_alias=AliasChoices("VERKCLI_BASE_URL", "VERKADA_BASE_URL"))
    ORG_ID: Optional[str] = Field(None, validation_alias=AliasChoices("VERKCLI_ORG_ID", "VERKADA_ORG_ID"))
    API_KEY: Optional[str] = Field(None, validation_alias=AliasChoices("VERKCLI_API_KEY", "VERKADA_API_KEY"))
    TOKEN: Optional[str] = Field(None, validation_alias=AliasChoices("VERKCLI_TOKEN", "VERKADA_TOKEN"))
    PROFILE: Optional[str] = Field(None, validation_alias=AliasChoices("VERKCLI_PROFILE", "VERKADA_PROFILE"))

    # ── Local files ───────────────────────────────────────────────────────
    CONFIG_PATH: Optional[str] = Field(None, validation_alias=AliasChoices("VERKCLI_CONFIG"))
    CACHE_DIR: Optional[str] = Field(None, validation_alias=AliasChoices("VERKCLI_CACHE_DIR"))

    # ── Defaults ──────────────────────────────────────────────────────────
    DEFAULT_BASE_URL: str = "https://api.verkada.com"
    HTTP_TIMEOUT_SECONDS: float = 30.0
    INDEX_TIMEOUT_SECONDS: float = 60.0

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "WARNING"
    LOG_FILE_ENABLED: bool = True

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
