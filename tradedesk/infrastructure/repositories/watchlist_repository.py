"""
SQLAlchemy Watchlist Repository Implementation
"""

# Standard library imports
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

# Local imports
from tradedesk.application.interfaces.exceptions import DuplicateEntityError
from tradedesk.domain.entities import WatchlistItem
from tradedesk.infrastructure.database.models import WatchlistEntry

from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class SqlAlchemyWatchlistRepository(SqlAlchemyRepository):
    async def list_for_user(self, user_id: UUID) -> list[WatchlistItem]:
        with self._errors(f"list watchlist for {user_id}"):
            records = self.session.scalars(
                select(WatchlistEntry)
                .where(WatchlistEntry.user_id == user_id)
                .order_by(WatchlistEntry.added_at.desc())
            ).all()
            return [self._to_entity(r) for r in records]

    async def add(self, item: WatchlistItem) -> WatchlistItem:
        with self._errors(f"add {item.stock_symbol} to watchlist"):
            existing = self.session.scalars(
                select(WatchlistEntry.id).where(
                    WatchlistEntry.user_id == item.user_id,
                    WatchlistEntry.stock_symbol == item.stock_symbol,
                )
            ).first()
            if existing is not None:
                raise DuplicateEntityError("Watchlist item", item.stock_symbol)

            self.session.add(
                WatchlistEntry(
                    id=item.id,
                    user_id=item.user_id,
                    stock_symbol=item.stock_symbol,
                    stock_name=item.stock_name,
                    added_at=item.added_at,
                )
            )
            try:
                self.session.flush()
            except IntegrityError as e:
                # Lost a race with a concurrent insert of the same symbol
                raise DuplicateEntityError("Watchlist item", item.stock_symbol) from e
            return item

    async def remove(self, user_id: UUID, symbol: str) -> bool:
        with self._errors(f"remove {symbol} from watchlist"):
            removed = self._delete_where(
                WatchlistEntry,
                WatchlistEntry.user_id == user_id,
                WatchlistEntry.stock_symbol == symbol.strip().upper(),
            )
            return removed > 0

    async def delete_for_user(self, user_id: UUID) -> int:
        with self._errors(f"delete watchlist for {user_id}"):
            return self._delete_where(WatchlistEntry, WatchlistEntry.user_id == user_id)

    @staticmethod
    def _to_entity(record: WatchlistEntry) -> WatchlistItem:
        return WatchlistItem(
            id=record.id,
            user_id=record.user_id,
            stock_symbol=record.stock_symbol,
            stock_name=record.stock_name,
            added_at=record.added_at,
        )
