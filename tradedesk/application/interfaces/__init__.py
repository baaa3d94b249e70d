"""Ports the application layer depends on; implemented by infrastructure."""

from .exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    RepositoryError,
    TransactionError,
    TransactionNotActiveError,
)
from .market_data import (
    IMarketDataProvider,
    MarketDataConfigurationError,
    MarketDataError,
    MarketDataUnavailableError,
    MarketDataValidationError,
    StockQuote,
    StockSearchResult,
    TrendingStock,
)
from .unit_of_work import IUnitOfWork

__all__ = [
    "DuplicateEntityError",
    "EntityNotFoundError",
    "IMarketDataProvider",
    "IUnitOfWork",
    "MarketDataConfigurationError",
    "MarketDataError",
    "MarketDataUnavailableError",
    "MarketDataValidationError",
    "RepositoryError",
    "StockQuote",
    "StockSearchResult",
    "TransactionError",
    "TransactionNotActiveError",
    "TrendingStock",
]
