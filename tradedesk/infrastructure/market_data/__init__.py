"""Market data providers."""

from tradedesk.application.interfaces.market_data import IMarketDataProvider
from tradedesk.infrastructure.config import MarketDataConfig

from .indian_stock_api import IndianStockAPIClient
from .static_provider import StaticMarketDataProvider


def create_market_data_provider(config: MarketDataConfig) -> IMarketDataProvider:
    if config.provider == "static":
        return StaticMarketDataProvider()
    return IndianStockAPIClient(config)


__all__ = ["IndianStockAPIClient", "StaticMarketDataProvider", "create_market_data_provider"]
