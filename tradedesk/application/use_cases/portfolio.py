"""
Portfolio Use Cases

Holdings with P&L for a user, administrative holding maintenance and the
scheduled mark-to-market price refresh.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from tradedesk.application.interfaces.exceptions import EntityNotFoundError
from tradedesk.application.interfaces.market_data import IMarketDataProvider
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.clock import utc_now
from tradedesk.domain.entities import Holding
from tradedesk.domain.services.portfolio_calculator import PortfolioCalculator, PortfolioMetrics
from tradedesk.domain.value_objects.money import to_decimal

from .base import EXPECTED_ERRORS, TransactionalUseCase, UseCaseResponse
from .base_request import BaseRequestDTO
from .common import require_account


# Request/Response DTOs
@dataclass
class GetPortfolioRequest(BaseRequestDTO):
    user_id: UUID


@dataclass
class GetPortfolioResponse(UseCaseResponse):
    holdings: list[Holding] = field(default_factory=list)
    metrics: PortfolioMetrics | None = None
    available_funds: Decimal | None = None


@dataclass
class UpsertHoldingRequest(BaseRequestDTO):
    """Admin create-or-update of one user's holding in one symbol."""

    user_id: UUID
    symbol: str
    quantity: int
    avg_price: Decimal
    current_price: Decimal


@dataclass
class HoldingResponse(UseCaseResponse):
    holding: Holding | None = None
    created: bool = False


@dataclass
class DeleteHoldingRequest(BaseRequestDTO):
    holding_id: UUID


@dataclass
class ListAllHoldingsRequest(BaseRequestDTO):
    search: str | None = None


@dataclass
class HoldingView:
    holding: Holding
    full_name: str | None = None
    email: str | None = None


@dataclass
class ListAllHoldingsResponse(UseCaseResponse):
    items: list[HoldingView] = field(default_factory=list)


@dataclass
class RefreshPricesRequest(BaseRequestDTO):
    price_date: date | None = None


@dataclass
class RefreshPricesResponse(UseCaseResponse):
    message: str = ""
    updated_count: int = 0
    error_count: int = 0
    prices: dict[str, Decimal] = field(default_factory=dict)


# Use Case Implementations
class GetPortfolioUseCase(TransactionalUseCase[GetPortfolioRequest, GetPortfolioResponse]):
    """Open holdings of a user with aggregate metrics."""

    def __init__(self, unit_of_work: IUnitOfWork, calculator: PortfolioCalculator | None = None):
        super().__init__(unit_of_work, "GetPortfolioUseCase")
        self.calculator = calculator or PortfolioCalculator()

    async def validate(self, request: GetPortfolioRequest) -> str | None:
        return None

    async def process(self, request: GetPortfolioRequest) -> GetPortfolioResponse:
        account = await require_account(self.unit_of_work, request.user_id)
        holdings = [
            h for h in await self.unit_of_work.holdings.list_for_user(request.user_id)
            if h.quantity > 0
        ]
        return GetPortfolioResponse(
            success=True,
            holdings=holdings,
            metrics=self.calculator.calculate_metrics(holdings),
            available_funds=account.funds,
            request_id=request.request_id,
        )


class UpsertHoldingUseCase(TransactionalUseCase[UpsertHoldingRequest, HoldingResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "UpsertHoldingUseCase")

    async def validate(self, request: UpsertHoldingRequest) -> str | None:
        if not request.symbol or not request.symbol.strip():
            return "Symbol is required"
        if request.quantity < 0:
            return "Quantity cannot be negative"
        if to_decimal(request.avg_price) < 0 or to_decimal(request.current_price) < 0:
            return "Prices cannot be negative"
        return None

    async def process(self, request: UpsertHoldingRequest) -> HoldingResponse:
        await require_account(self.unit_of_work, request.user_id)

        holding = await self.unit_of_work.holdings.get_for_user(
            request.user_id, request.symbol.strip().upper(), for_update=True
        )
        created = holding is None
        if holding is None:
            holding = Holding(
                user_id=request.user_id,
                symbol=request.symbol,
                quantity=request.quantity,
                avg_price=to_decimal(request.avg_price),
                current_price=to_decimal(request.current_price),
            )
        else:
            holding.revise(
                request.quantity, to_decimal(request.avg_price), to_decimal(request.current_price)
            )

        await self.unit_of_work.holdings.save(holding)
        return HoldingResponse(
            success=True, holding=holding, created=created, request_id=request.request_id
        )


class DeleteHoldingUseCase(TransactionalUseCase[DeleteHoldingRequest, HoldingResponse]):
    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "DeleteHoldingUseCase")

    async def validate(self, request: DeleteHoldingRequest) -> str | None:
        return None

    async def process(self, request: DeleteHoldingRequest) -> HoldingResponse:
        holding = await self.unit_of_work.holdings.get(request.holding_id)
        if holding is None:
            raise EntityNotFoundError("Holding", request.holding_id)
        await self.unit_of_work.holdings.delete(holding.id)
        return HoldingResponse(success=True, holding=holding, request_id=request.request_id)


class ListAllHoldingsUseCase(TransactionalUseCase[ListAllHoldingsRequest, ListAllHoldingsResponse]):
    """Every holding in the system joined with its owner, for the back office."""

    def __init__(self, unit_of_work: IUnitOfWork):
        super().__init__(unit_of_work, "ListAllHoldingsUseCase")

    async def validate(self, request: ListAllHoldingsRequest) -> str | None:
        return None

    async def process(self, request: ListAllHoldingsRequest) -> ListAllHoldingsResponse:
        holdings = await self.unit_of_work.holdings.list_all()
        accounts = await self.unit_of_work.accounts.get_many(list({h.user_id for h in holdings}))

        needle = (request.search or "").strip().lower()
        items = []
        for holding in holdings:
            account = accounts.get(holding.user_id)
            view = HoldingView(
                holding=holding,
                full_name=account.full_name if account else None,
                email=account.email if account else None,
            )
            haystack = " ".join(
                v for v in (holding.symbol, view.full_name, view.email) if v
            ).lower()
            if needle and needle not in haystack:
                continue
            items.append(view)

        return ListAllHoldingsResponse(success=True, items=items, request_id=request.request_id)


class RefreshPortfolioPricesUseCase(
    TransactionalUseCase[RefreshPricesRequest, RefreshPricesResponse]
):
    """
    Mark every held symbol to its latest price.

    A symbol whose quote or write fails, or whose price is not positive,
    is counted as an error and skipped. Each symbol's writes run in their own
    savepoint, so the remaining symbols are still updated.
    """

    def __init__(self, unit_of_work: IUnitOfWork, market_data: IMarketDataProvider):
        super().__init__(unit_of_work, "RefreshPortfolioPricesUseCase")
        self.market_data = market_data

    async def validate(self, request: RefreshPricesRequest) -> str | None:
        return None

    async def process(self, request: RefreshPricesRequest) -> RefreshPricesResponse:
        price_date = request.price_date or utc_now().date()
        symbols = await self.unit_of_work.holdings.distinct_symbols(min_quantity=1)
        self.logger.info(f"Refreshing prices for {len(symbols)} symbols")

        updated_count = 0
        error_count = 0
        prices: dict[str, Decimal] = {}

        for symbol in symbols:
            try:
                quote = await self.market_data.get_quote(symbol)
                price = quote.last_price
            except EXPECTED_ERRORS as e:
                self.logger.error(f"Price fetch failed for {symbol}: {e}")
                error_count += 1
                continue

            if price <= 0:
                self.logger.error(f"Invalid price for {symbol}: {price}")
                error_count += 1
                continue

            try:
                async with self.unit_of_work.savepoint():
                    await self._mark_symbol(symbol, price, price_date)
            except EXPECTED_ERRORS as e:
                self.logger.error(f"Price update failed for {symbol}: {e}")
                error_count += 1
                continue

            prices[symbol] = price
            updated_count += 1

        message = (
            f"Portfolio price update completed. Updated: {updated_count}, Errors: {error_count}"
        )
        self.logger.info(message)
        return RefreshPricesResponse(
            success=True,
            message=message,
            updated_count=updated_count,
            error_count=error_count,
            prices=prices,
            request_id=request.request_id,
        )

    async def _mark_symbol(self, symbol: str, price: Decimal, price_date: date) -> None:
        await self.unit_of_work.price_history.record(symbol, price, price_date)
        for holding in await self.unit_of_work.holdings.list_by_symbol(symbol):
            holding.mark_to_market(price)
            await self.unit_of_work.holdings.save(holding)
