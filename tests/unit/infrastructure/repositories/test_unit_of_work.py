"""
Tests for SqlAlchemyUnitOfWork and the repositories it hands out, run
against the in-memory SQLite database.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from tradedesk.application.interfaces.exceptions import (
    DuplicateEntityError,
    TransactionNotActiveError,
)
from tradedesk.domain.entities import Account, Holding, WatchlistItem
from tradedesk.domain.value_objects import ReviewStatus
from tradedesk.infrastructure.database.models import PortfolioPriceUpdate, User
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork


@pytest.fixture
def unit_of_work(session_factory):
    return SqlAlchemyUnitOfWork(session_factory)


@pytest.fixture
def user_id(db_session):
    user = User(email="trader@example.com", password_hash="x")
    db_session.add(user)
    db_session.commit()
    return user.id


class TestTransactions:
    @pytest.mark.asyncio
    async def test_repositories_need_an_open_transaction(self, unit_of_work):
        with pytest.raises(TransactionNotActiveError):
            unit_of_work.accounts

        async with unit_of_work:
            assert unit_of_work.accounts is not None

        with pytest.raises(TransactionNotActiveError):
            unit_of_work.watchlist

    @pytest.mark.asyncio
    async def test_leaving_without_commit_discards_writes(self, unit_of_work):
        owner = uuid4()
        async with unit_of_work:
            await unit_of_work.watchlist.add(WatchlistItem(user_id=owner, stock_symbol="TCS"))

        async with unit_of_work:
            assert await unit_of_work.watchlist.list_for_user(owner) == []

    @pytest.mark.asyncio
    async def test_commit_persists(self, unit_of_work):
        owner = uuid4()
        async with unit_of_work:
            await unit_of_work.watchlist.add(WatchlistItem(user_id=owner, stock_symbol="tcs"))
            await unit_of_work.commit()

        async with unit_of_work:
            items = await unit_of_work.watchlist.list_for_user(owner)
        assert [item.stock_symbol for item in items] == ["TCS"]

    @pytest.mark.asyncio
    async def test_exception_rolls_back_and_propagates(self, unit_of_work):
        owner = uuid4()
        with pytest.raises(RuntimeError):
            async with unit_of_work:
                await unit_of_work.watchlist.add(WatchlistItem(user_id=owner, stock_symbol="ITC"))
                raise RuntimeError("boom")

        async with unit_of_work:
            assert await unit_of_work.watchlist.list_for_user(owner) == []

    @pytest.mark.asyncio
    async def test_savepoint_rolls_back_only_its_block(self, unit_of_work):
        owner = uuid4()
        async with unit_of_work:
            await unit_of_work.watchlist.add(WatchlistItem(user_id=owner, stock_symbol="TCS"))
            with pytest.raises(RuntimeError):
                async with unit_of_work.savepoint():
                    await unit_of_work.watchlist.add(
                        WatchlistItem(user_id=owner, stock_symbol="ITC")
                    )
                    raise RuntimeError("boom")
            async with unit_of_work.savepoint():
                await unit_of_work.watchlist.add(WatchlistItem(user_id=owner, stock_symbol="SBIN"))
            await unit_of_work.commit()

        async with unit_of_work:
            items = await unit_of_work.watchlist.list_for_user(owner)
        assert sorted(item.stock_symbol for item in items) == ["SBIN", "TCS"]


class TestRepositories:
    @pytest.mark.asyncio
    async def test_duplicate_watchlist_symbol(self, unit_of_work):
        owner = uuid4()
        async with unit_of_work:
            await unit_of_work.watchlist.add(WatchlistItem(user_id=owner, stock_symbol="INFY"))
            with pytest.raises(DuplicateEntityError):
                await unit_of_work.watchlist.add(WatchlistItem(user_id=owner, stock_symbol="infy"))

    @pytest.mark.asyncio
    async def test_account_round_trip(self, unit_of_work, user_id):
        async with unit_of_work:
            await unit_of_work.accounts.save(
                Account(
                    user_id=user_id,
                    email="trader@example.com",
                    full_name="Asha Rao",
                    funds=Decimal("1234.50"),
                )
            )
            await unit_of_work.commit()

        async with unit_of_work:
            account = await unit_of_work.accounts.get_by_user_id(user_id)
            accounts, total = await unit_of_work.accounts.list_accounts(search="ASHA")
            counts = await unit_of_work.accounts.count_by_status()

        assert account.funds == Decimal("1234.50")
        assert account.verification_status is ReviewStatus.PENDING
        assert total == 1
        assert accounts[0].user_id == user_id
        assert counts["pending"] == 1

    @pytest.mark.asyncio
    async def test_holdings_by_symbol(self, unit_of_work, user_id):
        async with unit_of_work:
            await unit_of_work.holdings.save(
                Holding(user_id=user_id, symbol="SBIN", quantity=10, avg_price=Decimal("800"))
            )
            await unit_of_work.holdings.save(
                Holding(user_id=user_id, symbol="ITC", quantity=0, avg_price=Decimal("250"))
            )
            await unit_of_work.commit()

        async with unit_of_work:
            symbols = await unit_of_work.holdings.distinct_symbols(min_quantity=1)
            held = await unit_of_work.holdings.get_for_user(user_id, "SBIN")

        assert symbols == ["SBIN"]
        assert held.avg_price == Decimal("800")

    @pytest.mark.asyncio
    async def test_price_history_keeps_one_row_per_day(self, unit_of_work, db_session):
        async with unit_of_work:
            await unit_of_work.price_history.record("TCS", Decimal("3180.25"), date(2024, 6, 3))
            await unit_of_work.price_history.record("TCS", Decimal("3190.00"), date(2024, 6, 3))
            await unit_of_work.commit()

        rows = db_session.scalars(select(PortfolioPriceUpdate)).all()
        assert len(rows) == 1
        assert Decimal(rows[0].current_price) == Decimal("3190.00")
