"""
Market data proxy.

Forwards lookups to the configured provider so its API key stays on the
server. Requires a signed-in user.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from tradedesk.application.interfaces.market_data import IMarketDataProvider

from ..dependencies import CurrentUser, get_market_data, require_user

router = APIRouter(prefix="/market", tags=["Market data"])


@router.get("/trending")
async def trending(
    _: CurrentUser = Depends(require_user),
    market_data: IMarketDataProvider = Depends(get_market_data),
) -> list[dict[str, Any]]:
    return [stock.to_dict() for stock in await market_data.trending()]


@router.get("/search")
async def search(
    query: str = Query(""),
    _: CurrentUser = Depends(require_user),
    market_data: IMarketDataProvider = Depends(get_market_data),
) -> list[dict[str, Any]]:
    return [result.to_dict() for result in await market_data.search(query)]


@router.get("/stock")
async def stock(
    name: str = Query(""),
    _: CurrentUser = Depends(require_user),
    market_data: IMarketDataProvider = Depends(get_market_data),
) -> dict[str, Any]:
    quote = await market_data.get_quote(name)
    return quote.to_dict()
