from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass
class Settings:
    """Process-level settings for the bundled entry points."""

    log_level: str = "INFO"
    log_file: Optional[Path] = None
    pinentry_greeting: str = ""  # empty keeps the protocol's own greeting


SETTINGS = Settings()


def load_settings(env_path: str = ".env") -> Settings:
    """Load settings from the environment, reading ``env_path`` first if it exists."""
    if Path(env_path).exists():
        load_dotenv(env_path, override=False)
    SETTINGS.log_level = os.getenv("ASSUAN_LOG_LEVEL", SETTINGS.log_level).upper()
    log_file = os.getenv("ASSUAN_LOG_FILE")
    if log_file:
        SETTINGS.log_file = Path(log_file)
    SETTINGS.pinentry_greeting = os.getenv("ASSUAN_PINENTRY_GREETING") or SETTINGS.pinentry_greeting
    return SETTINGS


__all__ = ["Settings", "SETTINGS", "load_settings"]
