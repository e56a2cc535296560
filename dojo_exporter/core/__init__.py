"""Core exporter configuration and concurrency primitives."""

from dojo_exporter.core.config import Settings, get_settings
from dojo_exporter.core.locks import ReadWriteLock

__all__ = ["ReadWriteLock", "Settings", "get_settings"]
