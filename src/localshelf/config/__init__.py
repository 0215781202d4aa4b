"""Configuration module for localshelf."""

from .settings import (
    DatabaseSettings,
    ObservabilitySettings,
    ScanSettings,
    Settings,
    get_settings,
)

__all__ = [
    "DatabaseSettings",
    "ObservabilitySettings",
    "ScanSettings",
    "Settings",
    "get_settings",
]
