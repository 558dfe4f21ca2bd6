"""Configuration: settings and constants."""

from reftree.config.settings import Settings, settings


__all__ = ["Settings", "settings"]
