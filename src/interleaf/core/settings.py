"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `INTERLEAF_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    image_command : str
        Reserved text command that requests an image when confirmed with Enter.
    preview_max_px : int
        Longest edge (pixels) of the locally derived image preview.
    upload_dir : Path
        Target directory of the local uploader.
    upload_base_url : str
        URL prefix the local uploader returns as the resource reference.
    upload_endpoint : Optional[str]
        When set, uploads are POSTed to this HTTP endpoint instead of the local dir.
    upload_timeout_seconds : float
        Network timeout for the HTTP uploader.
    """

    environment: EnvName = Field(default="dev", alias="INTERLEAF_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    image_command: str = Field(default="/image", alias="INTERLEAF_IMAGE_COMMAND")
    preview_max_px: int = Field(default=256, ge=16, alias="INTERLEAF_PREVIEW_MAX_PX")

    upload_dir: Path = Field(default=Path("artifacts") / "uploads", alias="INTERLEAF_UPLOAD_DIR")
    upload_base_url: str = Field(default="/uploads", alias="INTERLEAF_UPLOAD_BASE_URL")
    upload_endpoint: str | None = Field(default=None, alias="INTERLEAF_UPLOAD_ENDPOINT")
    upload_timeout_seconds: float = Field(default=30.0, gt=0, alias="INTERLEAF_UPLOAD_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("INTERLEAF_ENV", "dev")
    return Settings()


# Ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "interleaf") -> logging.Logger:
    """Return a process-global logger configured to the current log level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
