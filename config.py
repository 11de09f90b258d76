"""Runtime configuration and logging setup.

Settings are read from ``BOOK_INVENTORY_*`` environment variables (or a local
``.env``) so the catalog endpoint and form defaults are passed explicitly into
the repository, store and edit session instead of living in module constants.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BOOK_INVENTORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    api_url: str = Field(
        default="http://localhost:8080/api/books",
        min_length=1,
        description="Base URL of the catalog's book collection resource.",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Per-request timeout passed to the HTTP transport.",
    )
    default_quantity: str = Field(
        default="1",
        description="Quantity pre-filled on a fresh create-mode draft.",
    )
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO", *, json: bool = False) -> None:
    """Install the structlog pipeline used by every module's ``log``."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
