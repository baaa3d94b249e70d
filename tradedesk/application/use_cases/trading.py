"""
Trading Use Cases

Implements business logic for simulated order placement and order history.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from tradedesk.application.interfaces.market_data import (
    IMarketDataProvider,
    MarketDataError,
    MarketDataUnavailableError,
)
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.entities import (
    Holding,
    Order,
    OrderMode,
    OrderRequest,
    OrderSide,
)
from tradedesk.domain.services.order_processor import OrderProcessor
from tradedesk.domain.value_objects.money import format_inr, to_decimal

from .base import TransactionalUseCase, UseCaseResponse
from .base_request import BaseRequestDTO
from .common import require_verified_account


# Request/Response DTOs
@dataclass
class PlaceOrderRequest(BaseRequestDTO):
    """Request to place a new order."""

    user_id: UUID
    symbol: str
    side: str  # "buy" or "sell"
    quantity: int
    order_type: str = "market"  # "market" or "limit"
    limit_price: Decimal | None = None


@dataclass
class PlaceOrderResponse(UseCaseResponse):
    """Response from placing an order."""

    order: Order | None = None
    holding: Holding | None = None
    holding_closed: bool = False
    available_funds: Decimal | None = None


@dataclass
class ListOrdersRequest(BaseRequestDTO):
    user_id: UUID
    side: str | None = None
    limit: int | None = None


@dataclass
class ListOrdersResponse(UseCaseResponse):
    orders: list[Order] = field(default_factory=list)


# Use Case Implementations
class PlaceOrderUseCase(TransactionalUseCase[PlaceOrderRequest, PlaceOrderResponse]):
    """
    Use case for placing simulated orders.

    The order row, the balance change and the holding change are written
    in one transaction.
    """

    def __init__(
        self,
        unit_of_work: IUnitOfWork,
        market_data: IMarketDataProvider,
        order_processor: OrderProcessor | None = None,
    ):
        """Initialize place order use case."""
        super().__init__(unit_of_work, "PlaceOrderUseCase")
        self.market_data = market_data
        self.order_processor = order_processor or OrderProcessor()

    async def validate(self, request: PlaceOrderRequest) -> str | None:
        """Validate the place order request."""
        if request.side not in [s.value for s in OrderSide]:
            return f"Invalid order side: {request.side}"

        if request.order_type not in [m.value for m in OrderMode]:
            return f"Invalid order type: {request.order_type}"

        if not request.symbol or not request.symbol.strip():
            return "Symbol is required"

        if request.quantity <= 0:
            return "Quantity must be positive"

        if request.order_type == OrderMode.LIMIT.value:
            if request.limit_price is None:
                return "limit order requires limit price"
            if to_decimal(request.limit_price) <= 0:
                return "Limit price must be positive"

        return None

    async def process(self, request: PlaceOrderRequest) -> PlaceOrderResponse:
        """Process the place order request."""
        account = await require_verified_account(self.unit_of_work, request.user_id)

        symbol = request.symbol.strip().upper()
        order_request = OrderRequest(
            user_id=request.user_id,
            symbol=symbol,
            side=OrderSide(request.side),
            quantity=request.quantity,
            mode=OrderMode(request.order_type),
            limit_price=to_decimal(request.limit_price) if request.limit_price is not None else None,
        )

        last_price = await self._last_price(order_request)
        order = Order.create(order_request, last_price)

        holding = await self.unit_of_work.holdings.get_for_user(
            request.user_id, symbol, for_update=True
        )
        result = self.order_processor.execute(
            order, account, holding, last_price if last_price is not None else order.price
        )

        await self.unit_of_work.orders.save(result.order)
        await self.unit_of_work.accounts.save(result.account)
        if result.holding_closed and result.holding is not None:
            await self.unit_of_work.holdings.delete(result.holding.id)
        elif result.holding is not None:
            await self.unit_of_work.holdings.save(result.holding)

        self.logger.info(
            f"Order {order.id} filled: {order.side.value} {order.quantity} {order.symbol} "
            f"@ {format_inr(order.price)}",
            extra={**request.log_context(), "symbol": order.symbol},
        )

        return PlaceOrderResponse(
            success=True,
            order=result.order,
            holding=None if result.holding_closed else result.holding,
            holding_closed=result.holding_closed,
            available_funds=result.account.funds,
            request_id=request.request_id,
        )

    async def _last_price(self, order_request: OrderRequest) -> Decimal | None:
        """Live price; a limit order still fills when no quote is available."""
        try:
            quote = await self.market_data.get_quote(order_request.symbol)
        except MarketDataError:
            if order_request.mode is OrderMode.LIMIT:
                self.logger.warning(
                    f"No quote for {order_request.symbol}; filling limit order at limit price"
                )
                return None
            raise
        if quote.last_price <= 0:
            if order_request.mode is OrderMode.LIMIT:
                return None
            raise MarketDataUnavailableError(f"No valid price for {order_request.symbol}")
        return quote.last_price


class ListOrdersUseCase(TransactionalUseCase[ListOrdersRequest, ListOrdersResponse]):
    """Order history of one user, newest first."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ListOrdersUseCase")

    async def validate(self, request: ListOrdersRequest) -> str | None:
        if request.side is not None and request.side not in [s.value for s in OrderSide]:
            return f"Invalid order side: {request.side}"
        if request.limit is not None and request.limit <= 0:
            return "Limit must be positive"
        return None

    async def process(self, request: ListOrdersRequest) -> ListOrdersResponse:
        side = OrderSide(request.side) if request.side else None
        orders = await self.unit_of_work.orders.list_for_user(
            request.user_id, side=side, limit=request.limit
        )
        return ListOrdersResponse(success=True, orders=orders, request_id=request.request_id)
