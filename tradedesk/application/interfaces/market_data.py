"""
Market Data Provider Interface

Defines the contract for quote, search and trending lookups against a
third-party stock data service, and the records it returns.
"""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Protocol


class MarketDataError(Exception):
    """Base exception for market data lookups."""

    error_code = "market_data_unavailable"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MarketDataValidationError(MarketDataError):
    """Raised when a lookup is missing its query parameter."""

    error_code = "validation_error"


class MarketDataUnavailableError(MarketDataError):
    """Raised when the provider fails or returns a non-success status."""

    pass


class MarketDataConfigurationError(MarketDataError):
    """Raised when the provider is not configured (e.g. no API key)."""

    error_code = "market_data_not_configured"


@dataclass
class TrendingStock:
    symbol: str
    name: str
    ltp: Decimal
    change: Decimal = Decimal("0")
    change_percent: Decimal = Decimal("0")
    volume: str = ""
    high: Decimal = Decimal("0")
    low: Decimal = Decimal("0")
    category: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("ltp", "change", "change_percent", "high", "low"):
            data[key] = str(data[key])
        return data


@dataclass
class StockQuote:
    """Price snapshot for one company, as listed on NSE and BSE."""

    symbol: str
    company_name: str
    nse_price: Decimal = Decimal("0")
    bse_price: Decimal = Decimal("0")
    percent_change: Decimal = Decimal("0")
    industry: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def last_price(self) -> Decimal:
        """NSE price, falling back to BSE when NSE is not quoted."""
        return self.nse_price if self.nse_price > 0 else self.bse_price

    @property
    def net_change(self) -> Decimal:
        return (self.last_price * self.percent_change / Decimal("100")).quantize(Decimal("0.01"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "company_name": self.company_name,
            "current_price": {"NSE": str(self.nse_price), "BSE": str(self.bse_price)},
            "last_price": str(self.last_price),
            "percent_change": str(self.percent_change),
            "net_change": str(self.net_change),
            "industry": self.industry,
        }


@dataclass
class StockSearchResult:
    symbol: str
    name: str
    quote: StockQuote
    industry: str | None = None
    market_cap: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "industry": self.industry,
            "market_cap": self.market_cap,
            **{k: v for k, v in self.quote.to_dict().items() if k not in ("symbol", "industry")},
        }


class IMarketDataProvider(Protocol):
    """Read-only access to live market data."""

    async def trending(self) -> list[TrendingStock]:
        """Top gainers and losers of the session."""
        ...

    async def search(self, query: str) -> list[StockSearchResult]:
        """Search companies and return each match with its quote."""
        ...

    async def get_quote(self, name: str) -> StockQuote:
        """
        Quote for one company by symbol or name.

        Raises:
            MarketDataValidationError: If name is blank
            MarketDataUnavailableError: If the provider cannot answer
        """
        ...
