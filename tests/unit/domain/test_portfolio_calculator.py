"""Unit tests for PortfolioCalculator."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from tradedesk.domain.entities import Holding
from tradedesk.domain.services import PortfolioCalculator


def holding(symbol, quantity, avg_price, current_price):
    return Holding(
        user_id=uuid4(),
        symbol=symbol,
        quantity=quantity,
        avg_price=Decimal(avg_price),
        current_price=Decimal(current_price),
    )


class TestCalculateMetrics:
    def test_totals_across_holdings(self):
        metrics = PortfolioCalculator.calculate_metrics(
            [
                holding("RELIANCE", 10, "2485.50", "2600"),
                holding("TCS", 5, "3200", "3180.25"),
            ]
        )

        assert metrics.total_invested == Decimal("40855.00")
        assert metrics.total_value == Decimal("41901.25")
        assert metrics.total_profit_loss == Decimal("1046.25")
        assert metrics.total_profit_loss_percentage == Decimal("2.56")
        assert metrics.total_holdings == 2

    def test_closed_holdings_are_ignored(self):
        metrics = PortfolioCalculator.calculate_metrics(
            [holding("RELIANCE", 0, "2485.50", "2600"), holding("ITC", 100, "250", "248.45")]
        )

        assert metrics.total_holdings == 1
        assert metrics.total_invested == Decimal("25000.00")
        assert metrics.total_profit_loss == Decimal("-155.00")

    def test_empty_portfolio_has_zero_percentage(self):
        metrics = PortfolioCalculator.calculate_metrics([])

        assert metrics.total_value == Decimal("0.00")
        assert metrics.total_profit_loss_percentage == Decimal("0.00")
        assert metrics.total_holdings == 0

    def test_to_dict_renders_decimals_as_strings(self):
        metrics = PortfolioCalculator.calculate_metrics([holding("ITC", 10, "200", "250")])

        assert metrics.to_dict() == {
            "total_value": "2500.00",
            "total_invested": "2000.00",
            "total_profit_loss": "500.00",
            "total_profit_loss_percentage": "25.00",
            "total_holdings": 1,
        }


def test_stock_profit_loss():
    result = PortfolioCalculator.calculate_stock_profit_loss(
        Decimal("540.25"), Decimal("600"), 20
    )

    assert result.profit_loss == Decimal("-1195.00")
    assert result.profit_loss_percentage == Decimal("-9.96")


def test_stock_profit_loss_with_zero_cost():
    result = PortfolioCalculator.calculate_stock_profit_loss(Decimal("10"), Decimal("0"), 5)

    assert result.profit_loss == Decimal("50.00")
    assert result.profit_loss_percentage == Decimal("0.00")


def test_days_held_rounds_up_partial_days():
    purchased = datetime(2024, 1, 1, 9, 15)

    assert PortfolioCalculator.calculate_days_held(purchased, datetime(2024, 1, 1, 15, 30)) == 1
    assert PortfolioCalculator.calculate_days_held(purchased, datetime(2024, 1, 11, 9, 15)) == 10
