"""
Market Data

Current prices come from an external quote provider. The provider is an
interface so tests (and deployments without a data feed) can plug in their
own source.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from finance_control.models.common import utc_now


class QuoteUnavailableError(Exception):
    """The provider could not produce a quote for a ticker."""
    pass


class Quote(BaseModel):
    ticker: str
    price: Decimal = Field(..., ge=0)
    previous_close: Optional[Decimal] = Field(default=None, ge=0)
    dividend_yield: Optional[Decimal] = Field(default=None, ge=0)
    as_of: datetime = Field(default_factory=utc_now)


class QuoteProvider(ABC):
    """Source of current prices."""

    @abstractmethod
    async def get_quote(self, ticker: str, exchange: str) -> Quote:
        """
        Fetch the latest quote.

        Raises:
            QuoteUnavailableError: If the ticker cannot be quoted right now
        """
        pass


class StaticQuoteProvider(QuoteProvider):
    """Serves quotes from a fixed table, keyed by ticker."""

    def __init__(self, quotes: Optional[dict[str, Quote]] = None):
        self._quotes = {k.upper(): v for k, v in (quotes or {}).items()}

    def set_quote(self, quote: Quote) -> None:
        self._quotes[quote.ticker.upper()] = quote

    async def get_quote(self, ticker: str, exchange: str) -> Quote:
        try:
            return self._quotes[ticker.upper()]
        except KeyError:
            raise QuoteUnavailableError(f"No quote for {ticker} on {exchange}")
