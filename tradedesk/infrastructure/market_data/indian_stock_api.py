"""
Client for the Indian stock market data API.

Proxies trending, industry search and single-stock quotes, normalizing
the provider's loosely-typed payloads into quote records. The API key
never leaves the server.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from tradedesk.application.interfaces.market_data import (
    MarketDataConfigurationError,
    MarketDataError,
    MarketDataUnavailableError,
    MarketDataValidationError,
    StockQuote,
    StockSearchResult,
    TrendingStock,
)
from tradedesk.infrastructure.config import MarketDataConfig

logger = logging.getLogger(__name__)

# The provider is inconsistent about key casing between endpoints
_SYMBOL_KEYS = ("symbol", "Symbol", "ticker_id")
_NAME_KEYS = ("name", "Name", "company_name", "companyName", "commonName")
_PRICE_KEYS = ("ltp", "LTP", "price", "Price")
_CHANGE_KEYS = ("change", "Change", "net_change")
_PERCENT_KEYS = ("changePercent", "ChangePercent", "percent_change", "percentChange")


def _first(item: dict[str, Any], keys: tuple[str, ...], default: Any = None) -> Any:
    for key in keys:
        value = item.get(key)
        if value not in (None, ""):
            return value
    return default


def _decimal(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    try:
        number = Decimal(str(value).replace(",", ""))
    except InvalidOperation:
        return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def _symbol_from_name(name: str) -> str:
    return "".join(name.split()).upper()


def normalize_trending(item: dict[str, Any], category: str | None = None) -> TrendingStock:
    name = str(_first(item, _NAME_KEYS, ""))
    symbol = str(_first(item, _SYMBOL_KEYS, "") or _symbol_from_name(name))
    return TrendingStock(
        symbol=symbol,
        name=name or symbol,
        ltp=_decimal(_first(item, _PRICE_KEYS)),
        change=_decimal(_first(item, _CHANGE_KEYS)),
        change_percent=_decimal(_first(item, _PERCENT_KEYS)),
        volume=str(item.get("volume") or item.get("Volume") or ""),
        high=_decimal(item.get("high") or item.get("High")),
        low=_decimal(item.get("low") or item.get("Low")),
        category=category,
    )


def normalize_quote(payload: dict[str, Any], requested_name: str) -> StockQuote:
    """
    Build a quote from a ``/stock`` payload.

    Raises:
        MarketDataUnavailableError: ``currentPrice`` is not an exchange-to-price mapping
    """
    company = str(payload.get("companyName") or requested_name)
    prices = payload.get("currentPrice") or {}
    if not isinstance(prices, dict):
        raise MarketDataUnavailableError(f"Malformed price block for {requested_name}")
    symbol = str(_first(payload, _SYMBOL_KEYS, "") or _symbol_from_name(requested_name))
    return StockQuote(
        symbol=symbol,
        company_name=company,
        nse_price=_decimal(prices.get("NSE")),
        bse_price=_decimal(prices.get("BSE")),
        percent_change=_decimal(payload.get("percentChange")),
        industry=payload.get("industry"),
        raw=payload,
    )


class IndianStockAPIClient:
    """
    Market data provider backed by the Indian stock API.

    Every request carries the ``X-Api-Key`` header. A missing key is a
    configuration error; any non-success status is reported as
    unavailable with the upstream status attached.
    """

    def __init__(self, config: MarketDataConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        if not self.config.api_key:
            raise MarketDataConfigurationError("Market data API key is not configured")

        url = f"{self.config.base_url.rstrip('/')}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.get(
                    url, params=params, headers={"X-Api-Key": self.config.api_key}
                )
        except httpx.HTTPError as e:
            logger.error(f"Market data request to {path} failed: {e}")
            raise MarketDataUnavailableError(f"Market data request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Market data {path} returned {response.status_code}")
            raise MarketDataUnavailableError(
                f"Market data provider returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MarketDataUnavailableError("Market data provider returned invalid JSON") from e

    async def trending(self) -> list[TrendingStock]:
        payload = await self._get("/trending")
        if isinstance(payload, dict) and "trending_stocks" in payload:
            groups = payload["trending_stocks"] or {}
            stocks = [
                normalize_trending(item, "gainer") for item in groups.get("top_gainers") or []
            ]
            stocks.extend(
                normalize_trending(item, "loser") for item in groups.get("top_losers") or []
            )
            return stocks

        if isinstance(payload, dict):
            payload = payload.get("data") or payload.get("stocks") or []
        if not isinstance(payload, list):
            raise MarketDataUnavailableError("Unexpected trending payload")
        return [normalize_trending(item) for item in payload if isinstance(item, dict)]

    async def get_quote(self, name: str) -> StockQuote:
        name = (name or "").strip()
        if not name:
            raise MarketDataValidationError("Stock name is required")

        payload = await self._get("/stock", {"name": name})
        if not isinstance(payload, dict):
            raise MarketDataUnavailableError(f"Unexpected quote payload for {name}")
        return normalize_quote(payload, name)

    async def search(self, query: str) -> list[StockSearchResult]:
        """
        Search by industry or company, then enrich each hit with a quote.

        Hits whose quote lookup fails are dropped.
        """
        query = (query or "").strip()
        if not query:
            raise MarketDataValidationError("Search query is required")

        payload = await self._get("/industry_search", {"query": query})
        if isinstance(payload, dict):
            payload = payload.get("data") or payload.get("results") or []
        if not isinstance(payload, list):
            raise MarketDataUnavailableError("Unexpected search payload")

        results: list[StockSearchResult] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            name = _first(item, ("commonName", "name", "Name", "company_name"))
            if not name:
                continue
            try:
                quote = await self.get_quote(str(name))
            except MarketDataError as e:
                logger.warning(f"Dropping search hit {name}: {e}")
                continue
            results.append(
                StockSearchResult(
                    symbol=quote.symbol,
                    name=str(name),
                    quote=quote,
                    industry=item.get("mgIndustry") or item.get("industry") or quote.industry,
                    market_cap=quote.raw.get("marketCap") or item.get("marketCap"),
                )
            )
        return results
