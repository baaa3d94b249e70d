"""
Portfolio Calculator - Aggregate P&L arithmetic over a user's holdings.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..clock import utc_now
from ..entities.holding import Holding
from ..value_objects.money import quantize_amount

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PortfolioMetrics:
    """Totals shown on the portfolio summary."""

    total_value: Decimal
    total_invested: Decimal
    total_profit_loss: Decimal
    total_profit_loss_percentage: Decimal
    total_holdings: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_value": str(self.total_value),
            "total_invested": str(self.total_invested),
            "total_profit_loss": str(self.total_profit_loss),
            "total_profit_loss_percentage": str(self.total_profit_loss_percentage),
            "total_holdings": self.total_holdings,
        }


@dataclass(frozen=True)
class StockProfitLoss:
    profit_loss: Decimal
    profit_loss_percentage: Decimal


class PortfolioCalculator:
    """
    Stateless portfolio arithmetic.

    Holdings with a non-positive quantity are closed and never count
    toward totals.
    """

    @staticmethod
    def calculate_metrics(holdings: Iterable[Holding]) -> PortfolioMetrics:
        open_holdings = [h for h in holdings if h.quantity > 0]

        total_value = sum((h.market_value for h in open_holdings), ZERO)
        total_invested = sum((h.invested_value for h in open_holdings), ZERO)
        total_profit_loss = total_value - total_invested

        if total_invested > 0:
            percentage = total_profit_loss / total_invested * HUNDRED
        else:
            percentage = ZERO

        return PortfolioMetrics(
            total_value=quantize_amount(total_value),
            total_invested=quantize_amount(total_invested),
            total_profit_loss=quantize_amount(total_profit_loss),
            total_profit_loss_percentage=quantize_amount(percentage),
            total_holdings=len(open_holdings),
        )

    @staticmethod
    def calculate_stock_profit_loss(
        current_price: Decimal, purchase_price: Decimal, quantity: int
    ) -> StockProfitLoss:
        profit_loss = (current_price - purchase_price) * quantity
        if purchase_price > 0:
            percentage = (current_price - purchase_price) / purchase_price * HUNDRED
        else:
            percentage = ZERO
        return StockProfitLoss(
            profit_loss=quantize_amount(profit_loss),
            profit_loss_percentage=quantize_amount(percentage),
        )

    @staticmethod
    def calculate_days_held(purchase_date: datetime, today: datetime | None = None) -> int:
        """Whole days between purchase and today, rounded up."""
        today = today or utc_now()
        seconds = abs((today - purchase_date).total_seconds())
        return math.ceil(seconds / 86400)
