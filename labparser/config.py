"""
Configuration
=============
Process settings read from the environment (and a ``.env`` file).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PORT = 4000
DEFAULT_MODEL = "gpt-4o"
DEFAULT_MAX_TOKENS = 4096

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass
class Settings:
    """Runtime configuration for the service and CLI."""

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    openai_max_tokens: int = DEFAULT_MAX_TOKENS
    openai_timeout: Optional[float] = None

    # Rendering
    render_dpi: int = 150

    # HTTP
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    max_upload_mb: int = 50

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, dotenv: bool = True) -> Settings:
        """Build settings from environment variables."""
        if dotenv:
            load_dotenv()

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
            openai_max_tokens=_env_int("OPENAI_MAX_TOKENS", DEFAULT_MAX_TOKENS),
            openai_timeout=_env_float("OPENAI_TIMEOUT"),
            render_dpi=_env_int("RENDER_DPI", 150),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", DEFAULT_PORT),
            max_upload_mb=_env_int("MAX_UPLOAD_MB", 50),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
        )

    @property
    def max_content_length(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def setup_logging(level: str = "INFO", log_file: Optional[str] = None):
    """Attach console (and optional file) handlers to the package logger."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    pkg_logger = logging.getLogger("labparser")
    pkg_logger.setLevel(log_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    if not any(
        type(h) is logging.StreamHandler for h in pkg_logger.handlers
    ):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        pkg_logger.addHandler(console)

    for handler in pkg_logger.handlers:
        handler.setLevel(log_level)

    if log_file and not any(
        isinstance(h, logging.FileHandler)
        and h.baseFilename == str(Path(log_file).absolute())
        for h in pkg_logger.handlers
    ):
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        pkg_logger.addHandler(file_handler)
