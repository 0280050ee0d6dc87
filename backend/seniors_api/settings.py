"""
Runtime settings for the senior benefits API.
Values come from environment variables (or `.env`) and can be updated at runtime.
"""

import os
from typing import Dict, Any, List
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass
class AppSettings:
    """Tunable behaviour of the workflow and reporting services."""
    release_delay_days: int = 3
    newly_registered_hours: int = 72
    log_level: str = "INFO"
    max_upload_mb: int = 10
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


_settings = AppSettings()


def get_settings() -> AppSettings:
    """Get current settings."""
    return _settings


def update_settings(**kwargs) -> AppSettings:
    """
    Update settings in place.

    Args:
        **kwargs: Setting names and their new values; unknown names are ignored

    Returns:
        Updated settings
    """
    global _settings

    for key, value in kwargs.items():
        if hasattr(_settings, key):
            setattr(_settings, key, value)

    return _settings


def load_settings_from_env():
    """Load settings from environment variables."""
    updates = {}

    if os.getenv("RELEASE_DELAY_DAYS") is not None:
        try:
            updates["release_delay_days"] = int(os.getenv("RELEASE_DELAY_DAYS", "3"))
        except ValueError:
            pass

    if os.getenv("NEWLY_REGISTERED_HOURS") is not None:
        try:
            updates["newly_registered_hours"] = int(os.getenv("NEWLY_REGISTERED_HOURS", "72"))
        except ValueError:
            pass

    if os.getenv("MAX_UPLOAD_MB") is not None:
        try:
            updates["max_upload_mb"] = int(os.getenv("MAX_UPLOAD_MB", "10"))
        except ValueError:
            pass

    if os.getenv("LOG_LEVEL") is not None:
        updates["log_level"] = os.getenv("LOG_LEVEL", "INFO").upper()

    if os.getenv("CORS_ORIGINS") is not None:
        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        updates["cors_origins"] = origins or ["*"]

    if updates:
        update_settings(**updates)


def get_settings_dict() -> Dict[str, Any]:
    """Get settings as dictionary."""
    return {
        "release_delay_days": _settings.release_delay_days,
        "newly_registered_hours": _settings.newly_registered_hours,
        "log_level": _settings.log_level,
        "max_upload_mb": _settings.max_upload_mb,
        "cors_origins": list(_settings.cors_origins),
    }


# Load settings from environment on import
load_settings_from_env()
