"""
Order Entity - A simulated buy/sell order
"""

from __future__ import annotations

# Standard library imports
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from ..clock import utc_now
from ..exceptions import OrderValidationError
from ..value_objects.money import quantize_amount, quantize_price, to_decimal


class OrderSide(Enum):
    """Order side enumeration"""

    BUY = "buy"
    SELL = "sell"


class OrderMode(Enum):
    """How the execution price is chosen"""

    MARKET = "market"
    LIMIT = "limit"


class OrderStatus(Enum):
    """Order status enumeration"""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


@dataclass
class OrderRequest:
    """Request parameters for creating an order."""

    user_id: UUID
    symbol: str
    side: OrderSide
    quantity: int
    mode: OrderMode = OrderMode.MARKET
    limit_price: Decimal | None = None


@dataclass
class Order:
    """
    Order entity backing the ``orders`` table.

    Orders fill immediately: a market order at the last traded price,
    a limit order at its limit price.
    """

    user_id: UUID
    symbol: str
    side: OrderSide
    quantity: int
    price: Decimal
    mode: OrderMode = OrderMode.MARKET
    status: OrderStatus = OrderStatus.COMPLETED

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        self.symbol = self.symbol.strip().upper()
        self._validate()

    def _validate(self) -> None:
        if not self.symbol:
            raise OrderValidationError("Order symbol cannot be empty")
        if self.quantity <= 0:
            raise OrderValidationError(
                "Order quantity must be positive", details={"quantity": self.quantity}
            )
        if self.price <= 0:
            raise OrderValidationError(
                "Order price must be positive", details={"price": str(self.price)}
            )

    @property
    def total_amount(self) -> Decimal:
        return quantize_amount(self.price * self.quantity)

    @classmethod
    def create(cls, request: OrderRequest, market_price: Decimal | None) -> Order:
        """Factory method that resolves the execution price for a request."""
        if request.mode is OrderMode.LIMIT:
            if request.limit_price is None:
                raise OrderValidationError("Limit order requires a limit price")
            price = to_decimal(request.limit_price)
        else:
            if market_price is None:
                raise OrderValidationError(
                    f"No market price available for {request.symbol}"
                )
            price = to_decimal(market_price)

        return cls(
            user_id=request.user_id,
            symbol=request.symbol,
            side=request.side,
            quantity=request.quantity,
            price=quantize_price(price),
            mode=request.mode,
        )
