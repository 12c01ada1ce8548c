"""Environment configuration interface for moonsync.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def sync_path() -> Path | None:
        """Get the Moon+ Reader sync folder (the directory containing `.Moon+`).

        Returns:
            Path to the sync folder, or None if MOONSYNC_SYNC_PATH is unset
        """
        value = os.getenv("MOONSYNC_SYNC_PATH", "").strip()
        return Path(value).expanduser() if value else None

    @staticmethod
    def track_books_without_highlights() -> bool:
        """Whether books with only progress or sync metadata are tracked.

        Returns:
            True if MOONSYNC_TRACK_WITHOUT_HIGHLIGHTS is truthy, defaults to False
        """
        value = os.getenv("MOONSYNC_TRACK_WITHOUT_HIGHLIGHTS", "")
        return value.strip().lower() in _TRUTHY

    @staticmethod
    def log_level() -> str:
        """Get the logging level.

        Returns:
            Upper-cased level name, defaults to 'INFO'
        """
        return os.getenv("LOG_LEVEL", "INFO").upper()


# Singleton instance for convenient access
env = Environment()
