"""Holdings, profit and loss, and the back-office portfolio tools."""

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tradedesk.application.interfaces.market_data import IMarketDataProvider
from tradedesk.application.use_cases.portfolio import (
    DeleteHoldingRequest,
    DeleteHoldingUseCase,
    GetPortfolioRequest,
    GetPortfolioUseCase,
    ListAllHoldingsRequest,
    ListAllHoldingsUseCase,
    RefreshPortfolioPricesUseCase,
    RefreshPricesRequest,
    UpsertHoldingUseCase,
)
from tradedesk.application.use_cases.portfolio import UpsertHoldingRequest as UpsertHolding
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

from ..dependencies import CurrentUser, get_market_data, get_unit_of_work, require_admin, require_user
from ..errors import unwrap
from ..schemas import (
    HoldingOut,
    PortfolioMetricsOut,
    PortfolioOut,
    RefreshPricesOut,
    UpsertHoldingRequest,
)

router = APIRouter(prefix="/portfolio", tags=["Portfolio"])


@router.get("/", response_model=PortfolioOut)
async def get_portfolio(
    user: CurrentUser = Depends(require_user),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> PortfolioOut:
    response = unwrap(
        await GetPortfolioUseCase(uow).execute(GetPortfolioRequest(user_id=user.user_id))
    )
    return PortfolioOut(
        holdings=[HoldingOut.from_entity(h) for h in response.holdings],
        metrics=PortfolioMetricsOut(**asdict(response.metrics)),
        available_funds=response.available_funds,
    )


@router.get("/all", response_model=list[HoldingOut])
async def list_all_holdings(
    search: str | None = Query(None, max_length=100),
    _: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> list[HoldingOut]:
    response = unwrap(
        await ListAllHoldingsUseCase(uow).execute(ListAllHoldingsRequest(search=search))
    )
    return [
        HoldingOut.from_entity(view.holding, view.full_name, view.email) for view in response.items
    ]


@router.put("/{user_id}/{symbol}", response_model=HoldingOut)
async def upsert_holding(
    user_id: UUID,
    symbol: str,
    body: UpsertHoldingRequest,
    _: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> HoldingOut:
    """Create or correct a user's holding by hand."""
    response = unwrap(
        await UpsertHoldingUseCase(uow).execute(
            UpsertHolding(
                user_id=user_id,
                symbol=symbol,
                quantity=body.quantity,
                avg_price=body.avg_price,
                current_price=body.current_price,
            )
        )
    )
    return HoldingOut.from_entity(response.holding)


@router.delete("/holdings/{holding_id}", response_model=HoldingOut)
async def delete_holding(
    holding_id: UUID,
    _: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
) -> HoldingOut:
    response = unwrap(
        await DeleteHoldingUseCase(uow).execute(DeleteHoldingRequest(holding_id=holding_id))
    )
    return HoldingOut.from_entity(response.holding)


@router.post("/refresh-prices", response_model=RefreshPricesOut)
async def refresh_prices(
    _: CurrentUser = Depends(require_admin),
    uow: SqlAlchemyUnitOfWork = Depends(get_unit_of_work),
    market_data: IMarketDataProvider = Depends(get_market_data),
) -> RefreshPricesOut:
    """Mark every held symbol to market; the same job the CLI runs on a schedule."""
    response = unwrap(
        await RefreshPortfolioPricesUseCase(uow, market_data).execute(RefreshPricesRequest())
    )
    return RefreshPricesOut(
        message=response.message,
        updated_count=response.updated_count,
        error_count=response.error_count,
        prices=response.prices,
    )
