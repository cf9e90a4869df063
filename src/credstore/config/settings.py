"""Credential store configuration resolved from the environment."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from credstore.observability.logging import LogFormat

StoreBackend = Literal["sqlite", "memory"]


class CredentialStoreSettings(BaseSettings):
    """Storage backend and paging defaults."""

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    backend: StoreBackend = Field(default="sqlite", alias="CREDSTORE_BACKEND")
    db_path: Path = Field(default=Path("data/credstore.sqlite3"), alias="CREDSTORE_DB_PATH")
    default_page_size: int = Field(default=100, ge=1, alias="CREDSTORE_DEFAULT_PAGE_SIZE")
    log_level: str = Field(default="INFO", alias="CREDSTORE_LOG_LEVEL")
    log_format: LogFormat = Field(default="text", alias="CREDSTORE_LOG_FORMAT")


def load_settings() -> CredentialStoreSettings:
    return CredentialStoreSettings()


def log_settings(settings: CredentialStoreSettings) -> None:
    """Record the resolved settings; call once logging is configured."""
    logging.getLogger("credstore.settings").info("credential store settings loaded: %r", settings)


__all__ = ["CredentialStoreSettings", "StoreBackend", "load_settings", "log_settings"]
