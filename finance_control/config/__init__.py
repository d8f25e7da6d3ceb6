"""Configuration package."""

from finance_control.config.settings import (
    AllocationSettings,
    AppSettings,
    MarketDataSettings,
    MetadataSettings,
    PaginationSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AllocationSettings",
    "AppSettings",
    "MarketDataSettings",
    "MetadataSettings",
    "PaginationSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
