"""Core app configuration, database, errors and security."""

from lunch_api.core.config import get_settings, settings
from lunch_api.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
