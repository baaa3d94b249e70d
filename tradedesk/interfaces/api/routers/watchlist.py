"""The signed-in user's watchlist."""

from fastapi import APIRouter, Depends, Query, status

from tradedesk.application.interfaces.market_data import IMarketDataProvider
from tradedesk.application.use_cases.watchlist import (
    AddToWatchlistRequest,
    AddToWatchlistUseCase,
    GetWatchlistRequest,
    GetWatchlistUseCase,
    RemoveFromWatchlistRequest,
    RemoveFromWatchlistUseCase,
)
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

from ..dependencies import CurrentUser, get_market_data, get_unit_of_work, require_user
from ..errors import unwrap
from ..schemas import MessageResponse, WatchlistAddRequest, WatchlistItemOut

router = APIRouter(prefix="/watchlist", tags=["Watchlist"])


@router.get("/", response_model=list[WatchlistItemOut])
async def get_watchlist(
    with_prices: bool = Query(True),
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
    market_data: IMarketDataProvider = Depends(get_market_data),
) -> list[WatchlistItemOut]:
    """Watched stocks, newest first. Items whose price lookup fails come back unpriced."""
    response = unwrap(
        await GetWatchlistUseCase(uow, market_data).execute(
            GetWatchlistRequest(user_id=user.user_id, with_prices=with_prices)
        )
    )
    return [
        WatchlistItemOut(
            id=entry.item.id,
            stock_symbol=entry.item.stock_symbol,
            stock_name=entry.item.stock_name,
            added_at=entry.item.added_at,
            current_price=entry.current_price,
            percent_change=entry.percent_change,
            net_change=entry.net_change,
        )
        for entry in response.entries
    ]


@router.post("/", response_model=WatchlistItemOut, status_code=status.HTTP_201_CREATED)
async def add_to_watchlist(
    body: WatchlistAddRequest,
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> WatchlistItemOut:
    response = unwrap(
        await AddToWatchlistUseCase(uow).execute(
            AddToWatchlistRequest(user_id=user.user_id, symbol=body.symbol, name=body.name)
        )
    )
    item = response.item
    return WatchlistItemOut(
        id=item.id, stock_symbol=item.stock_symbol, stock_name=item.stock_name, added_at=item.added_at
    )


@router.delete("/{symbol}", response_model=MessageResponse)
async def remove_from_watchlist(
    symbol: str,
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> MessageResponse:
    unwrap(
        await RemoveFromWatchlistUseCase(uow).execute(
            RemoveFromWatchlistRequest(user_id=user.user_id, symbol=symbol)
        )
    )
    return MessageResponse(message=f"{symbol.upper()} removed from watchlist")
