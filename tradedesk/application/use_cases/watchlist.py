"""
Watchlist Use Cases
"""

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from tradedesk.application.interfaces.exceptions import EntityNotFoundError
from tradedesk.application.interfaces.market_data import IMarketDataProvider, MarketDataError
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.entities import WatchlistItem

from .base import TransactionalUseCase, UseCaseResponse
from .base_request import BaseRequestDTO
from .common import require_verified_account


@dataclass
class GetWatchlistRequest(BaseRequestDTO):
    user_id: UUID
    with_prices: bool = True


@dataclass
class WatchlistEntry:
    item: WatchlistItem
    current_price: Decimal | None = None
    percent_change: Decimal | None = None
    net_change: Decimal | None = None


@dataclass
class GetWatchlistResponse(UseCaseResponse):
    entries: list[WatchlistEntry] = field(default_factory=list)


@dataclass
class AddToWatchlistRequest(BaseRequestDTO):
    user_id: UUID
    symbol: str
    name: str | None = None


@dataclass
class RemoveFromWatchlistRequest(BaseRequestDTO):
    user_id: UUID
    symbol: str


@dataclass
class WatchlistItemResponse(UseCaseResponse):
    item: WatchlistItem | None = None


class GetWatchlistUseCase(TransactionalUseCase[GetWatchlistRequest, GetWatchlistResponse]):
    """Watched stocks, newest first, priced from the market data provider."""

    def __init__(self, unit_of_work: IUnitOfWork, market_data: IMarketDataProvider | None = None):
        super().__init__(unit_of_work, "GetWatchlistUseCase")
        self.market_data = market_data

    async def validate(self, request: GetWatchlistRequest) -> str | None:
        return None

    async def process(self, request: GetWatchlistRequest) -> GetWatchlistResponse:
        items = await self.unit_of_work.watchlist.list_for_user(request.user_id)

        entries = []
        for item in items:
            entry = WatchlistEntry(item=item)
            if request.with_prices and self.market_data is not None:
                try:
                    quote = await self.market_data.get_quote(item.stock_name or item.stock_symbol)
                except MarketDataError as e:
                    self.logger.warning(f"No price for watchlist item {item.stock_symbol}: {e}")
                else:
                    entry.current_price = quote.last_price
                    entry.percent_change = quote.percent_change
                    entry.net_change = quote.net_change
            entries.append(entry)

        return GetWatchlistResponse(success=True, entries=entries, request_id=request.request_id)


class AddToWatchlistUseCase(TransactionalUseCase[AddToWatchlistRequest, WatchlistItemResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "AddToWatchlistUseCase")

    async def validate(self, request: AddToWatchlistRequest) -> str | None:
        if not request.symbol or not request.symbol.strip():
            return "Symbol is required"
        return None

    async def process(self, request: AddToWatchlistRequest) -> WatchlistItemResponse:
        await require_verified_account(self.unit_of_work, request.user_id, for_update=False)
        item = WatchlistItem(
            user_id=request.user_id, stock_symbol=request.symbol, stock_name=request.name
        )
        await self.unit_of_work.watchlist.add(item)
        return WatchlistItemResponse(success=True, item=item, request_id=request.request_id)


class RemoveFromWatchlistUseCase(
    TransactionalUseCase[RemoveFromWatchlistRequest, WatchlistItemResponse]
):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "RemoveFromWatchlistUseCase")

    async def validate(self, request: RemoveFromWatchlistRequest) -> str | None:
        if not request.symbol or not request.symbol.strip():
            return "Symbol is required"
        return None

    async def process(self, request: RemoveFromWatchlistRequest) -> WatchlistItemResponse:
        await require_verified_account(self.unit_of_work, request.user_id, for_update=False)
        symbol = request.symbol.strip().upper()
        if not await self.unit_of_work.watchlist.remove(request.user_id, symbol):
            raise EntityNotFoundError("Watchlist item", symbol)
        return WatchlistItemResponse(success=True, request_id=request.request_id)
