"""Core: config, rate limiting, and application bootstrap.

Single place for settings and storage configuration.
"""

from app.core.config import StorageConfig, get_settings, get_storage_config

__all__ = ["StorageConfig", "get_settings", "get_storage_config"]
