"""
SQLAlchemy Portfolio Repository Implementation

Holdings live in ``user_portfolios``, one row per user and symbol. The
daily refresh job's prices go to ``portfolio_price_updates``.
"""

# Standard library imports
import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

# Local imports
from tradedesk.domain.clock import utc_now
from tradedesk.domain.entities import Holding
from tradedesk.infrastructure.database.models import PortfolioEntry, PortfolioPriceUpdate

from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class SqlAlchemyHoldingRepository(SqlAlchemyRepository):
    async def get(self, holding_id: UUID) -> Holding | None:
        with self._errors(f"get holding {holding_id}"):
            record = self.session.get(PortfolioEntry, holding_id)
            return self._to_entity(record) if record else None

    async def get_for_user(
        self, user_id: UUID, symbol: str, for_update: bool = False
    ) -> Holding | None:
        with self._errors(f"get holding {symbol} for {user_id}"):
            query = select(PortfolioEntry).where(
                PortfolioEntry.user_id == user_id,
                PortfolioEntry.stock_symbol == symbol.strip().upper(),
            )
            if for_update:
                query = query.with_for_update()
            record = self.session.scalars(query).first()
            return self._to_entity(record) if record else None

    async def list_for_user(self, user_id: UUID) -> list[Holding]:
        with self._errors(f"list holdings for {user_id}"):
            records = self.session.scalars(
                select(PortfolioEntry)
                .where(PortfolioEntry.user_id == user_id)
                .order_by(PortfolioEntry.stock_symbol)
            ).all()
            return [self._to_entity(r) for r in records]

    async def list_all(self) -> list[Holding]:
        with self._errors("list holdings"):
            records = self.session.scalars(
                select(PortfolioEntry).order_by(PortfolioEntry.updated_at.desc())
            ).all()
            return [self._to_entity(r) for r in records]

    async def list_by_symbol(self, symbol: str) -> list[Holding]:
        with self._errors(f"list holdings of {symbol}"):
            records = self.session.scalars(
                select(PortfolioEntry).where(PortfolioEntry.stock_symbol == symbol)
            ).all()
            return [self._to_entity(r) for r in records]

    async def distinct_symbols(self, min_quantity: int = 1) -> list[str]:
        """Symbols held by anyone in at least ``min_quantity`` shares."""
        with self._errors("list held symbols"):
            return list(
                self.session.scalars(
                    select(PortfolioEntry.stock_symbol)
                    .where(PortfolioEntry.quantity >= min_quantity)
                    .distinct()
                    .order_by(PortfolioEntry.stock_symbol)
                ).all()
            )

    async def save(self, holding: Holding) -> Holding:
        with self._errors(f"save holding {holding.symbol} for {holding.user_id}"):
            record = self.session.get(PortfolioEntry, holding.id)
            if record is None:
                record = PortfolioEntry(
                    id=holding.id, user_id=holding.user_id, created_at=holding.created_at
                )
                self.session.add(record)

            record.stock_symbol = holding.symbol
            record.quantity = holding.quantity
            record.avg_price = holding.avg_price
            record.current_price = holding.current_price
            record.profit_loss = holding.profit_loss
            record.updated_at = holding.updated_at
            self.session.flush()
            return holding

    async def delete(self, holding_id: UUID) -> None:
        with self._errors(f"delete holding {holding_id}"):
            self._delete_where(PortfolioEntry, PortfolioEntry.id == holding_id)

    async def delete_for_user(self, user_id: UUID) -> int:
        with self._errors(f"delete holdings for {user_id}"):
            return self._delete_where(PortfolioEntry, PortfolioEntry.user_id == user_id)

    @staticmethod
    def _to_entity(record: PortfolioEntry) -> Holding:
        return Holding(
            id=record.id,
            user_id=record.user_id,
            symbol=record.stock_symbol,
            quantity=record.quantity,
            avg_price=record.avg_price,
            current_price=record.current_price,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class SqlAlchemyPriceHistoryRepository(SqlAlchemyRepository):
    async def record(self, symbol: str, price: Decimal, price_date: date) -> None:
        """Upsert the price of ``symbol`` for ``price_date``."""
        with self._errors(f"record price of {symbol}"):
            record = self.session.scalars(
                select(PortfolioPriceUpdate).where(
                    PortfolioPriceUpdate.stock_symbol == symbol,
                    PortfolioPriceUpdate.price_date == price_date,
                )
            ).first()
            if record is None:
                record = PortfolioPriceUpdate(stock_symbol=symbol, price_date=price_date)
                self.session.add(record)
            record.current_price = price
            record.updated_at = utc_now()
            self.session.flush()
            logger.debug(f"Recorded {symbol} at {price} for {price_date}")
