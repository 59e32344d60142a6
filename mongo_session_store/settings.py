from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SESSION_STORE_", env_file=".env", extra="ignore")

    # MongoDB
    MONGO_URI: str = Field(default="mongodb://127.0.0.1:27017/")
    MONGO_DB: str = Field(default="sessions")
    SERVER_SELECTION_TIMEOUT_MS: int = Field(default=5000)

    # Collections
    COL_SESSIONS: str = Field(default="sessions")

    # Expiry (applied by the admin process only)
    SESSION_TTL_SECONDS: Optional[int] = Field(default=None)
    ENABLE_EXPIRE_AT: bool = Field(default=True)

    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()
