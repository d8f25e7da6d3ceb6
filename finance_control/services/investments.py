"""
Investment Service

Holdings CRUD plus the price refresh against a QuoteProvider.

DESIGN DECISION: The quote fetch is the only retried operation in the
system. Each ticker gets a bounded number of attempts with exponential
backoff (tenacity, configured by MarketDataSettings). Only
QuoteUnavailableError is retried. A ticker that still fails, for whatever
reason the provider gives, is reported back and logged; it never fails the
whole refresh.
"""

from typing import Optional

from pydantic import Field
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from finance_control.audit.logger import AuditLogger
from finance_control.config.settings import MarketDataSettings
from finance_control.models.audit import AuditEventType
from finance_control.models.common import ApiModel
from finance_control.models.investment import Investment, InvestmentRequest
from finance_control.services.common import get_owned
from finance_control.services.market_data import Quote, QuoteProvider, QuoteUnavailableError
from finance_control.services.storage.interface import EntityStorageInterface


ENTITY = "investment"


class RefreshResult(ApiModel):
    """Outcome of a price refresh."""

    updated: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class InvestmentService:
    def __init__(
        self,
        investments: EntityStorageInterface[Investment],
        settings: MarketDataSettings,
        quotes: Optional[QuoteProvider] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.investments = investments
        self.settings = settings
        self.quotes = quotes
        self.audit = audit or AuditLogger()
        self._fetch_quote = retry(
            stop=stop_after_attempt(settings.retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=settings.retry_min_wait_seconds,
                max=settings.retry_max_wait_seconds,
            ),
            retry=retry_if_exception_type(QuoteUnavailableError),
            reraise=True,
        )(self._fetch_quote_once)

    async def get(self, owner_id: int, investment_id: int) -> Investment:
        return await get_owned(self.investments, owner_id, investment_id, "Investment")

    async def create(self, owner_id: int, request: InvestmentRequest) -> Investment:
        investment = await self.investments.create(
            Investment(user_id=owner_id, **request.model_dump())
        )
        await self.audit.log_entity_written(
            AuditEventType.INVESTMENT_CREATED,
            ENTITY,
            investment.id,
            owner_id,
            details={"ticker": investment.ticker},
        )
        return investment

    async def update(
        self,
        owner_id: int,
        investment_id: int,
        request: InvestmentRequest,
    ) -> Investment:
        existing = await self.get(owner_id, investment_id)
        investment = await self.investments.update(existing.model_copy(update=request.model_dump()))
        await self.audit.log_entity_written(
            AuditEventType.INVESTMENT_UPDATED,
            ENTITY,
            investment.id,
            owner_id,
            details={"ticker": investment.ticker},
        )
        return investment

    async def delete(self, owner_id: int, investment_id: int) -> None:
        await self.get(owner_id, investment_id)
        await self.investments.delete(investment_id)
        await self.audit.log_entity_written(
            AuditEventType.INVESTMENT_DELETED, ENTITY, investment_id, owner_id
        )

    async def refresh_prices(self, owner_id: int) -> RefreshResult:
        """Refresh current prices of every active holding of the owner."""
        result = RefreshResult()
        if self.quotes is None:
            return result

        holdings = await self.investments.find(
            lambda i: i.user_id == owner_id and i.is_active
        )
        for holding in holdings:
            try:
                quote = await self._fetch_quote(holding)
            except Exception as e:
                result.failed.append(holding.ticker)
                await self.audit.log_external_service_error(
                    "quote_provider",
                    str(e) or type(e).__name__,
                    details={
                        "ticker": holding.ticker,
                        "exchange": holding.exchange,
                        "error_type": type(e).__name__,
                    },
                )
                continue

            holding.current_price = quote.price
            if quote.previous_close is not None:
                holding.previous_close = quote.previous_close
            if quote.dividend_yield is not None:
                holding.dividend_yield = quote.dividend_yield
            holding.last_updated = quote.as_of
            await self.investments.update(holding)
            result.updated.append(holding.ticker)

        await self.audit.log_prices_refreshed(owner_id, result.updated, result.failed)
        return result

    async def _fetch_quote_once(self, holding: Investment) -> Quote:
        return await self.quotes.get_quote(holding.ticker, holding.exchange)
