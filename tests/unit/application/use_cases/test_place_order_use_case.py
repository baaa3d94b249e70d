"""
Unit tests for PlaceOrderUseCase and ListOrdersUseCase.

Tests cover:
- Request validation
- Market fills at the quoted price, limit fills at the limit price
- Limit orders still fill when no quote is available
- Holding persistence and deletion of fully sold holdings
- Unverified accounts and missing quotes roll the transaction back
"""

from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from tradedesk.application.interfaces.market_data import (
    MarketDataUnavailableError,
    StockQuote,
)
from tradedesk.application.use_cases.trading import (
    ListOrdersRequest,
    ListOrdersUseCase,
    PlaceOrderRequest,
    PlaceOrderUseCase,
)
from tradedesk.domain.entities import Account, Holding, OrderMode, OrderSide
from tradedesk.domain.value_objects import ReviewStatus


class TestPlaceOrderUseCase:
    """Test PlaceOrderUseCase."""

    @pytest.fixture
    def user_id(self):
        return uuid4()

    @pytest.fixture
    def account(self, user_id):
        return Account(
            user_id=user_id,
            email="trader@example.com",
            funds=Decimal("100000"),
            verification_status=ReviewStatus.APPROVED,
        )

    @pytest.fixture
    def mock_unit_of_work(self, account):
        """Create mock unit of work."""
        uow = AsyncMock()
        uow.accounts = AsyncMock()
        uow.accounts.get_by_user_id.return_value = account
        uow.holdings = AsyncMock()
        uow.holdings.get_for_user.return_value = None
        uow.orders = AsyncMock()
        uow.commit = AsyncMock()
        uow.rollback = AsyncMock()
        uow.__aenter__.return_value = uow
        uow.__aexit__.return_value = None
        return uow

    @pytest.fixture
    def market_data(self):
        provider = AsyncMock()
        provider.get_quote.return_value = StockQuote(
            symbol="RELIANCE",
            company_name="Reliance Industries",
            nse_price=Decimal("2485.50"),
            bse_price=Decimal("2486.00"),
        )
        return provider

    @pytest.fixture
    def use_case(self, mock_unit_of_work, market_data):
        return PlaceOrderUseCase(unit_of_work=mock_unit_of_work, market_data=market_data)

    @pytest.mark.asyncio
    async def test_market_buy_fills_at_nse_price(self, use_case, mock_unit_of_work, user_id):
        request = PlaceOrderRequest(user_id=user_id, symbol="reliance", side="buy", quantity=10)

        response = await use_case.execute(request)

        assert response.success is True
        assert response.order.price == Decimal("2485.5000")
        assert response.order.side is OrderSide.BUY
        assert response.available_funds == Decimal("75145.00")
        mock_unit_of_work.orders.save.assert_called_once_with(response.order)
        mock_unit_of_work.holdings.save.assert_called_once_with(response.holding)
        mock_unit_of_work.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_bse_price_used_when_nse_missing(self, use_case, market_data, user_id):
        market_data.get_quote.return_value = StockQuote(
            symbol="RELIANCE",
            company_name="Reliance Industries",
            nse_price=Decimal("0"),
            bse_price=Decimal("2486.00"),
        )

        response = await use_case.execute(
            PlaceOrderRequest(user_id=user_id, symbol="RELIANCE", side="buy", quantity=1)
        )

        assert response.order.price == Decimal("2486.0000")

    @pytest.mark.asyncio
    async def test_limit_order_fills_at_limit_price(self, use_case, user_id):
        response = await use_case.execute(
            PlaceOrderRequest(
                user_id=user_id,
                symbol="RELIANCE",
                side="buy",
                quantity=2,
                order_type="limit",
                limit_price=Decimal("2400"),
            )
        )

        assert response.success is True
        assert response.order.price == Decimal("2400.0000")
        assert response.order.mode is OrderMode.LIMIT
        assert response.holding.current_price == Decimal("2485.5000")

    @pytest.mark.asyncio
    async def test_limit_order_fills_without_quote(self, use_case, market_data, user_id):
        market_data.get_quote.side_effect = MarketDataUnavailableError("provider down")

        response = await use_case.execute(
            PlaceOrderRequest(
                user_id=user_id,
                symbol="RELIANCE",
                side="buy",
                quantity=2,
                order_type="limit",
                limit_price=Decimal("2400"),
            )
        )

        assert response.success is True
        assert response.holding.current_price == Decimal("2400.0000")

    @pytest.mark.asyncio
    async def test_market_order_without_quote_fails(
        self, use_case, market_data, mock_unit_of_work, user_id
    ):
        market_data.get_quote.side_effect = MarketDataUnavailableError("provider down")

        response = await use_case.execute(
            PlaceOrderRequest(user_id=user_id, symbol="RELIANCE", side="buy", quantity=2)
        )

        assert response.success is False
        assert response.error_code == "market_data_unavailable"
        mock_unit_of_work.orders.save.assert_not_called()
        mock_unit_of_work.rollback.assert_called_once()
        mock_unit_of_work.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_selling_whole_holding_deletes_it(
        self, use_case, mock_unit_of_work, user_id
    ):
        holding = Holding(
            user_id=user_id, symbol="RELIANCE", quantity=5, avg_price=Decimal("2400")
        )
        mock_unit_of_work.holdings.get_for_user.return_value = holding

        response = await use_case.execute(
            PlaceOrderRequest(user_id=user_id, symbol="RELIANCE", side="sell", quantity=5)
        )

        assert response.success is True
        assert response.holding_closed is True
        assert response.holding is None
        assert response.available_funds == Decimal("112427.50")
        mock_unit_of_work.holdings.delete.assert_called_once_with(holding.id)
        mock_unit_of_work.holdings.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, use_case, mock_unit_of_work, user_id):
        response = await use_case.execute(
            PlaceOrderRequest(user_id=user_id, symbol="RELIANCE", side="buy", quantity=100)
        )

        assert response.success is False
        assert response.error_code == "insufficient_funds"
        mock_unit_of_work.accounts.save.assert_not_called()
        mock_unit_of_work.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_order_too_large_for_decimal_precision(
        self, use_case, mock_unit_of_work, user_id
    ):
        response = await use_case.execute(
            PlaceOrderRequest(
                user_id=user_id,
                symbol="RELIANCE",
                side="buy",
                quantity=10**30,
                order_type="limit",
                limit_price=Decimal("1"),
            )
        )

        assert response.success is False
        assert response.error_code == "validation_error"
        mock_unit_of_work.accounts.save.assert_not_called()
        mock_unit_of_work.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_unverified_account_cannot_trade(
        self, use_case, mock_unit_of_work, account, user_id
    ):
        account.verification_status = ReviewStatus.PENDING

        response = await use_case.execute(
            PlaceOrderRequest(user_id=user_id, symbol="RELIANCE", side="buy", quantity=1)
        )

        assert response.success is False
        assert response.error_code == "account_not_verified"

    @pytest.mark.asyncio
    async def test_missing_account_is_not_found(self, use_case, mock_unit_of_work, user_id):
        mock_unit_of_work.accounts.get_by_user_id.return_value = None

        response = await use_case.execute(
            PlaceOrderRequest(user_id=user_id, symbol="RELIANCE", side="buy", quantity=1)
        )

        assert response.error_code == "not_found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"side": "short"}, "Invalid order side"),
            ({"order_type": "stop"}, "Invalid order type"),
            ({"quantity": 0}, "Quantity must be positive"),
            ({"symbol": "  "}, "Symbol is required"),
            ({"order_type": "limit"}, "limit order requires limit price"),
            ({"order_type": "limit", "limit_price": Decimal("-1")}, "Limit price must be positive"),
        ],
    )
    async def test_validation(self, use_case, mock_unit_of_work, user_id, overrides, message):
        values = {"user_id": user_id, "symbol": "RELIANCE", "side": "buy", "quantity": 1}
        values.update(overrides)

        response = await use_case.execute(PlaceOrderRequest(**values))

        assert response.success is False
        assert response.error_code == "validation_error"
        assert message in response.error
        mock_unit_of_work.accounts.get_by_user_id.assert_not_called()


class TestListOrdersUseCase:
    @pytest.mark.asyncio
    async def test_passes_filters_to_repository(self):
        uow = AsyncMock()
        uow.orders = AsyncMock()
        uow.orders.list_for_user.return_value = []
        uow.__aenter__.return_value = uow
        uow.__aexit__.return_value = None
        user_id = uuid4()

        response = await ListOrdersUseCase(uow).execute(
            ListOrdersRequest(user_id=user_id, side="sell", limit=5)
        )

        assert response.success is True
        uow.orders.list_for_user.assert_called_once_with(user_id, side=OrderSide.SELL, limit=5)

    @pytest.mark.asyncio
    async def test_rejects_unknown_side(self):
        uow = AsyncMock()
        uow.__aenter__.return_value = uow
        uow.__aexit__.return_value = None

        response = await ListOrdersUseCase(uow).execute(
            ListOrdersRequest(user_id=uuid4(), side="both")
        )

        assert response.success is False
