"""
Configuration management for book-fetcher.
"""

import logging
import os
from pathlib import Path


class Config:
    """Global configuration manager."""

    def __init__(self, output_dir=None, log_level=None):
        """
        Args:
            output_dir: Extraction output directory (optional)
            log_level: Logging level name or number (optional)
        """
        self.output_dir = self._get_output_dir(output_dir)
        self.log_level = self._get_log_level(log_level)

    @staticmethod
    def _get_output_dir(custom_dir=None) -> Path:
        """
        Get output directory with priority order:
        1. Custom directory (--output parameter)
        2. Environment variable BOOK_FETCHER_OUTPUT_DIR
        3. Current working directory
        """
        if custom_dir:
            return Path(custom_dir)

        if env_dir := os.getenv("BOOK_FETCHER_OUTPUT_DIR"):
            return Path(env_dir).expanduser()

        return Path.cwd()

    @staticmethod
    def _get_log_level(custom_level=None) -> int:
        """
        Get logging level with priority order:
        1. Custom level (--verbose flag)
        2. Environment variable BOOK_FETCHER_LOG_LEVEL
        3. WARNING
        """
        level = custom_level or os.getenv("BOOK_FETCHER_LOG_LEVEL") or logging.WARNING
        if isinstance(level, int):
            return level

        resolved = logging.getLevelName(str(level).upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        return resolved
