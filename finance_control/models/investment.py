"""
Investment Models

Holdings are read-heavy. Market value, cost and gains are derived from
quantity, average price and the externally sourced prices; they are
computed on access and never stored.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field, field_validator

from finance_control.models.common import ApiModel, to_cents, utc_now


class InvestmentType(str, Enum):
    """Asset class."""
    STOCK = "STOCK"
    FII = "FII"
    BOND = "BOND"
    ETF = "ETF"
    CRYPTO = "CRYPTO"
    COMMODITY = "COMMODITY"
    CURRENCY = "CURRENCY"
    OTHER = "OTHER"


class InvestmentSubtype(str, Enum):
    """Finer classification within an asset class."""
    ORDINARY = "ORDINARY"
    PREFERRED = "PREFERRED"
    UNIT = "UNIT"
    TIJOLO = "TIJOLO"
    PAPEL = "PAPEL"
    HIBRIDO = "HIBRIDO"
    FUNDO_DE_FUNDOS = "FUNDO_DE_FUNDOS"
    CDB = "CDB"
    RDB = "RDB"
    LCI = "LCI"
    LCA = "LCA"
    LF = "LF"
    DEBENTURE = "DEBENTURE"
    TESOURO_DIRETO = "TESOURO_DIRETO"
    OTHER = "OTHER"


class InvestmentRequest(ApiModel):
    """Body of POST /investments and PUT /investments/{id}."""

    ticker: str = Field(..., min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, max_length=200)
    investment_type: InvestmentType
    investment_subtype: Optional[InvestmentSubtype] = None
    sector: Optional[str] = Field(default=None, max_length=100)
    industry: Optional[str] = Field(default=None, max_length=100)
    exchange: str = Field(default="B3", max_length=20)
    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    average_price: Decimal = Field(default=Decimal("0"), ge=0)
    current_price: Optional[Decimal] = Field(default=None, ge=0)
    previous_close: Optional[Decimal] = Field(default=None, ge=0)
    dividend_yield: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator('ticker', 'exchange')
    @classmethod
    def upper_case(cls, v: str) -> str:
        return v.strip().upper()


class Investment(ApiModel):
    """A stored holding."""

    id: Optional[int] = None
    user_id: int

    ticker: str = Field(..., min_length=1, max_length=20)
    name: Optional[str] = None
    investment_type: InvestmentType
    investment_subtype: Optional[InvestmentSubtype] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    exchange: str = "B3"

    quantity: Decimal = Field(default=Decimal("0"), ge=0)
    average_price: Decimal = Field(default=Decimal("0"), ge=0)
    current_price: Optional[Decimal] = Field(default=None, ge=0)
    previous_close: Optional[Decimal] = Field(default=None, ge=0)
    dividend_yield: Optional[Decimal] = Field(default=None, ge=0)

    is_active: bool = True
    last_updated: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('ticker', 'exchange')
    @classmethod
    def upper_case(cls, v: str) -> str:
        return v.strip().upper()

    @computed_field
    @property
    def market_value(self) -> Decimal:
        if self.current_price is None:
            return Decimal("0.00")
        return to_cents(self.quantity * self.current_price)

    @computed_field
    @property
    def total_cost(self) -> Decimal:
        return to_cents(self.quantity * self.average_price)

    @computed_field
    @property
    def profit(self) -> Decimal:
        return self.market_value - self.total_cost

    @computed_field
    @property
    def profit_percentage(self) -> Decimal:
        if self.total_cost == 0:
            return Decimal("0.00")
        return (self.profit / self.total_cost * 100).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    @computed_field
    @property
    def day_change(self) -> Optional[Decimal]:
        if self.current_price is None or self.previous_close is None:
            return None
        return self.current_price - self.previous_close

    @computed_field
    @property
    def day_change_percentage(self) -> Optional[Decimal]:
        """Change against the previous close, in percent with four places."""
        if self.day_change is None or not self.previous_close:
            return None
        return (self.day_change / self.previous_close * 100).quantize(
            Decimal("0.0001"), rounding=ROUND_HALF_UP
        )
