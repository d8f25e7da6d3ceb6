"""
Configuration Management for Finance Control

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Every setting group is an explicit object.
The Pager, Sort Resolver, allocator and aggregators receive the group they
need at construction; `get_settings()` is only the default source used by
the factory functions.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationSettings(BaseSettings):
    """Page size defaults for every list endpoint."""

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        extra="ignore"
    )

    default_page_size: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Page size used when the request omits or garbles `size`"
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Upper bound for `size`"
    )

    @model_validator(mode='after')
    def validate_bounds(self) -> 'PaginationSettings':
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size cannot exceed max_page_size")
        return self


class AllocationSettings(BaseSettings):
    """Responsibility split configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ALLOCATION_",
        extra="ignore"
    )

    percentage_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        le=1,
        description="Allowed deviation of the percentage total from 100"
    )
    currency_places: int = Field(
        default=2,
        ge=0,
        le=4,
        description="Decimal places of calculated amounts"
    )

    @property
    def quantum(self) -> Decimal:
        """Smallest currency unit, e.g. Decimal('0.01')."""
        return Decimal(1).scaleb(-self.currency_places)


class MetadataSettings(BaseSettings):
    """Metadata (data=...) view configuration."""

    model_config = SettingsConfigDict(
        env_prefix="METADATA_",
        extra="ignore"
    )

    default_ranking_limit: int = Field(
        default=10,
        ge=1,
        description="Entries returned by ranking views when `limit` is omitted"
    )
    max_ranking_limit: int = Field(
        default=50,
        ge=1,
        description="Upper bound for `limit` on ranking views"
    )
    supported_exchanges: str = Field(
        default="B3,NYSE,NASDAQ",
        description="Comma-separated list of exchanges served by `data=exchanges`"
    )

    @field_validator('supported_exchanges')
    @classmethod
    def validate_exchanges(cls, v: str) -> str:
        if not any(part.strip() for part in v.split(",")):
            raise ValueError("At least one exchange must be configured")
        return v

    @property
    def exchanges_list(self) -> list[str]:
        """Get supported exchanges as a list."""
        return [ex.strip().upper() for ex in self.supported_exchanges.split(",") if ex.strip()]


class MarketDataSettings(BaseSettings):
    """External quote provider configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MARKET_DATA_",
        extra="ignore"
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per quote before giving up"
    )
    retry_min_wait_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Minimum backoff between attempts"
    )
    retry_max_wait_seconds: float = Field(
        default=10.0,
        ge=0.0,
        description="Maximum backoff between attempts"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def pagination(self) -> PaginationSettings:
        return PaginationSettings()

    @property
    def allocation(self) -> AllocationSettings:
        return AllocationSettings()

    @property
    def metadata(self) -> MetadataSettings:
        return MetadataSettings()

    @property
    def market_data(self) -> MarketDataSettings:
        return MarketDataSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an `<name>_error`
    entry describing each failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("pagination", "allocation", "metadata", "market_data", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
