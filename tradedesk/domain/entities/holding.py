"""
Holding Entity - A user's position in one stock, with average cost and P&L
"""

# Standard library imports
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from ..clock import utc_now
from ..exceptions import InsufficientHoldingsError, ValidationError
from ..value_objects.money import quantize_amount, quantize_price, to_decimal


@dataclass
class Holding:
    """
    Holding entity backing the ``user_portfolios`` table.

    Average price only moves on buys. Profit/loss is always
    ``(current_price - avg_price) * quantity``.
    """

    user_id: UUID
    symbol: str
    quantity: int
    avg_price: Decimal
    current_price: Decimal | None = None
    profit_loss: Decimal = field(default_factory=lambda: Decimal("0"))

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.symbol = self.symbol.strip().upper()
        if not self.symbol:
            raise ValidationError("Holding symbol cannot be empty")
        if self.quantity < 0:
            raise ValidationError("Holding quantity cannot be negative")
        self.avg_price = quantize_price(self.avg_price)
        if self.avg_price < 0:
            raise ValidationError("Average price cannot be negative")
        if self.current_price is None:
            self.current_price = self.avg_price
        self.current_price = quantize_price(self.current_price)
        self._recalculate()

    @classmethod
    def open(cls, user_id: UUID, symbol: str, quantity: int, price: Decimal, ltp: Decimal) -> "Holding":
        """Factory method for the first buy of a symbol."""
        if quantity <= 0:
            raise ValidationError("Cannot open a holding with non-positive quantity")
        return cls(
            user_id=user_id,
            symbol=symbol,
            quantity=quantity,
            avg_price=to_decimal(price),
            current_price=to_decimal(ltp),
        )

    @property
    def is_closed(self) -> bool:
        return self.quantity <= 0

    @property
    def invested_value(self) -> Decimal:
        return self.avg_price * self.quantity

    @property
    def market_value(self) -> Decimal:
        return (self.current_price or Decimal("0")) * self.quantity

    def apply_buy(self, quantity: int, price: Decimal, ltp: Decimal) -> None:
        """Add shares bought at ``price`` and re-average the cost."""
        if quantity <= 0:
            raise ValidationError("Buy quantity must be positive")
        price = to_decimal(price)
        new_quantity = self.quantity + quantity
        total_cost = self.avg_price * self.quantity + price * quantity
        self.avg_price = quantize_price(total_cost / new_quantity)
        self.quantity = new_quantity
        self.mark_to_market(ltp)

    def apply_sell(self, quantity: int, ltp: Decimal) -> None:
        """Remove sold shares; the average cost of the rest is unchanged."""
        if quantity <= 0:
            raise ValidationError("Sell quantity must be positive")
        if quantity > self.quantity:
            raise InsufficientHoldingsError(self.symbol, quantity, self.quantity)
        self.quantity -= quantity
        self.mark_to_market(ltp)

    def mark_to_market(self, price: Decimal) -> None:
        """Set the current price and recompute profit/loss."""
        self.current_price = quantize_price(to_decimal(price))
        self._recalculate()
        self.updated_at = utc_now()

    def revise(self, quantity: int, avg_price: Decimal, current_price: Decimal) -> None:
        """Administrative correction of an entry."""
        if quantity < 0:
            raise ValidationError("Holding quantity cannot be negative")
        self.quantity = quantity
        self.avg_price = quantize_price(to_decimal(avg_price))
        self.mark_to_market(current_price)

    def _recalculate(self) -> None:
        current = self.current_price if self.current_price is not None else self.avg_price
        self.profit_loss = quantize_amount((current - self.avg_price) * self.quantity)
