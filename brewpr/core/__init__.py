"""Process-wide settings and logging setup."""

from brewpr.core.config import Settings, get_settings
from brewpr.core.logging import configure_structlog

__all__ = ["Settings", "get_settings", "configure_structlog"]
