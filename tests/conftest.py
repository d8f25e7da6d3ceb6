"""Shared fixtures: settings without retry delays and in-memory components."""

import pytest

from finance_control.components import create_app_components
from finance_control.config.settings import (
    AllocationSettings,
    MarketDataSettings,
    MetadataSettings,
    PaginationSettings,
)
from finance_control.services.market_data import StaticQuoteProvider
from finance_control.services.storage.memory import InMemoryAuditStorage


class FastSettings:
    """Settings container with explicit groups and no retry backoff."""

    def __init__(self):
        self.pagination = PaginationSettings(default_page_size=20, max_page_size=100)
        self.allocation = AllocationSettings(percentage_tolerance="0.01", currency_places=2)
        self.metadata = MetadataSettings(
            default_ranking_limit=10,
            max_ranking_limit=50,
            supported_exchanges="B3,NYSE,NASDAQ",
        )
        self.market_data = MarketDataSettings(
            retry_attempts=3,
            retry_min_wait_seconds=0,
            retry_max_wait_seconds=0,
        )


@pytest.fixture
def settings():
    return FastSettings()


@pytest.fixture
def quotes():
    return StaticQuoteProvider()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def components(settings, quotes, audit_storage):
    return create_app_components(settings=settings, quotes=quotes, audit_storage=audit_storage)
