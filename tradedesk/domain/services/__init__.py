"""Domain services - business logic spanning more than one entity."""

from .order_processor import ExecutionResult, OrderProcessor
from .portfolio_calculator import PortfolioCalculator, PortfolioMetrics, StockProfitLoss

__all__ = [
    "ExecutionResult",
    "OrderProcessor",
    "PortfolioCalculator",
    "PortfolioMetrics",
    "StockProfitLoss",
]
