"""
Fixed-price market data for demos and tests.
"""

from dataclasses import dataclass
from decimal import Decimal

from tradedesk.application.interfaces.market_data import (
    MarketDataUnavailableError,
    MarketDataValidationError,
    StockQuote,
    StockSearchResult,
    TrendingStock,
)


@dataclass(frozen=True)
class _Listing:
    symbol: str
    name: str
    price: Decimal
    change_percent: Decimal
    industry: str


DEFAULT_LISTINGS = (
    _Listing("RELIANCE", "Reliance Industries", Decimal("2485.50"), Decimal("1.25"), "Oil & Gas"),
    _Listing("TCS", "Tata Consultancy Services", Decimal("3180.25"), Decimal("-0.45"), "IT Services"),
    _Listing("HDFCBANK", "HDFC Bank", Decimal("1595.75"), Decimal("0.85"), "Banking"),
    _Listing("INFY", "Infosys Limited", Decimal("1435.80"), Decimal("-1.10"), "IT Services"),
    _Listing("ITC", "ITC Limited", Decimal("248.45"), Decimal("0.30"), "FMCG"),
    _Listing("ICICIBANK", "ICICI Bank", Decimal("1185.30"), Decimal("1.05"), "Banking"),
    _Listing("BHARTIARTL", "Bharti Airtel", Decimal("1520.60"), Decimal("2.15"), "Telecom"),
    _Listing("SBIN", "State Bank of India", Decimal("825.45"), Decimal("-0.75"), "Banking"),
    _Listing("LT", "Larsen & Toubro", Decimal("3650.80"), Decimal("0.55"), "Construction"),
    _Listing("WIPRO", "Wipro Limited", Decimal("540.25"), Decimal("-0.20"), "IT Services"),
)


class StaticMarketDataProvider:
    """Serves quotes from a fixed listing table; no network access."""

    def __init__(self, listings: tuple[_Listing, ...] = DEFAULT_LISTINGS) -> None:
        self._listings = {listing.symbol: listing for listing in listings}

    def set_price(self, symbol: str, price: Decimal) -> None:
        listing = self._listings[symbol.upper()]
        self._listings[listing.symbol] = _Listing(
            listing.symbol, listing.name, price, listing.change_percent, listing.industry
        )

    def _find(self, name: str) -> _Listing | None:
        key = name.strip().upper()
        if key in self._listings:
            return self._listings[key]
        for listing in self._listings.values():
            if listing.name.upper() == key:
                return listing
        return None

    def _quote(self, listing: _Listing) -> StockQuote:
        return StockQuote(
            symbol=listing.symbol,
            company_name=listing.name,
            nse_price=listing.price,
            bse_price=listing.price,
            percent_change=listing.change_percent,
            industry=listing.industry,
        )

    async def trending(self) -> list[TrendingStock]:
        ranked = sorted(self._listings.values(), key=lambda listing: listing.change_percent, reverse=True)
        stocks = []
        for listing in ranked:
            change = (listing.price * listing.change_percent / Decimal("100")).quantize(Decimal("0.01"))
            stocks.append(
                TrendingStock(
                    symbol=listing.symbol,
                    name=listing.name,
                    ltp=listing.price,
                    change=change,
                    change_percent=listing.change_percent,
                    high=listing.price,
                    low=listing.price,
                    category="gainer" if listing.change_percent >= 0 else "loser",
                )
            )
        return stocks

    async def search(self, query: str) -> list[StockSearchResult]:
        query = (query or "").strip().upper()
        if not query:
            raise MarketDataValidationError("Search query is required")
        return [
            StockSearchResult(
                symbol=listing.symbol,
                name=listing.name,
                quote=self._quote(listing),
                industry=listing.industry,
            )
            for listing in self._listings.values()
            if query in listing.symbol or query in listing.name.upper() or query in listing.industry.upper()
        ]

    async def get_quote(self, name: str) -> StockQuote:
        if not (name or "").strip():
            raise MarketDataValidationError("Stock name is required")
        listing = self._find(name)
        if listing is None:
            raise MarketDataUnavailableError(f"No quote for {name}", status_code=404)
        return self._quote(listing)
