# config.py

"""Configuration for Service Designer analysis."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SERVICE_TYPE = "general"


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return int(raw)


def _optional_path(name: str) -> Optional[Path]:
    raw = os.getenv(name, "").strip()
    return Path(raw) if raw else None


class Settings:
    """Settings read from the environment (and .env when present)."""

    def __init__(self):
        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

        # Gap analysis
        self.GAP_DEFAULT_SERVICE_TYPE = os.getenv(
            "GAP_DEFAULT_SERVICE_TYPE", DEFAULT_SERVICE_TYPE
        )
        self.GAP_CUSTOM_RULES_PATH = _optional_path("GAP_CUSTOM_RULES_PATH")

        # Gap report formatting (None = unlimited)
        self.GAP_REPORT_MAX_PER_CATEGORY = _optional_int("GAP_REPORT_MAX_PER_CATEGORY")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear cached settings (for tests)."""
    global _settings
    _settings = None
