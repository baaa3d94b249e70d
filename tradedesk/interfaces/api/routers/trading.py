"""Simulated order placement and order history."""

from fastapi import APIRouter, Depends, Query, status

from tradedesk.application.interfaces.market_data import IMarketDataProvider
from tradedesk.application.use_cases.trading import (
    ListOrdersRequest,
    ListOrdersUseCase,
    PlaceOrderRequest,
    PlaceOrderUseCase,
)
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

from ..dependencies import CurrentUser, get_market_data, get_unit_of_work, require_user
from ..errors import unwrap
from ..schemas import HoldingOut, OrderOut, PlaceOrderResponse
from ..schemas import PlaceOrderRequest as PlaceOrderBody

router = APIRouter(prefix="/trading", tags=["Trading"])


@router.post("/orders", response_model=PlaceOrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    body: PlaceOrderBody,
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
    market_data: IMarketDataProvider = Depends(get_market_data),
) -> PlaceOrderResponse:
    """
    Place a simulated order.

    Market orders fill at the last traded price; limit orders fill at the
    limit price. The balance and holding change with the order row.
    """
    response = unwrap(
        await PlaceOrderUseCase(uow, market_data).execute(
            PlaceOrderRequest(
                user_id=user.user_id,
                symbol=body.symbol,
                side=body.side,
                quantity=body.quantity,
                order_type=body.order_type,
                limit_price=body.limit_price,
            )
        )
    )
    return PlaceOrderResponse(
        order=OrderOut.from_entity(response.order),
        holding=HoldingOut.from_entity(response.holding) if response.holding else None,
        holding_closed=response.holding_closed,
        available_funds=response.available_funds,
    )


@router.get("/orders", response_model=list[OrderOut])
async def list_orders(
    side: str | None = Query(None, pattern="^(buy|sell)$"),
    limit: int | None = Query(None, gt=0, le=500),
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> list[OrderOut]:
    response = unwrap(
        await ListOrdersUseCase(uow).execute(
            ListOrdersRequest(user_id=user.user_id, side=side, limit=limit)
        )
    )
    return [OrderOut.from_entity(order) for order in response.orders]
