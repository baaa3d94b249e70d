"""
SQLAlchemy Order Repository Implementation

Orders are written once when they fill; the ``orders`` table stores the
side in ``order_type`` and the market/limit mode in ``price_type``.
"""

# Standard library imports
import logging
from uuid import UUID

from sqlalchemy import select

# Local imports
from tradedesk.domain.entities import Order, OrderMode, OrderSide, OrderStatus
from tradedesk.infrastructure.database.models import OrderRecord

from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class SqlAlchemyOrderRepository(SqlAlchemyRepository):
    async def save(self, order: Order) -> Order:
        """
        Save a new order or update an existing order.

        Raises:
            RepositoryError: If save operation fails
        """
        with self._errors(f"save order {order.id}"):
            record = self.session.get(OrderRecord, order.id)
            if record is None:
                record = OrderRecord(id=order.id, user_id=order.user_id, created_at=order.created_at)
                self.session.add(record)

            record.stock_symbol = order.symbol
            record.order_type = order.side.value
            record.price_type = order.mode.value
            record.quantity = order.quantity
            record.price = order.price
            record.total_amount = order.total_amount
            record.status = order.status.value
            record.updated_at = order.updated_at
            self.session.flush()

            logger.debug(f"Saved order {order.id}")
            return order

    async def list_for_user(
        self, user_id: UUID, side: OrderSide | None = None, limit: int | None = None
    ) -> list[Order]:
        """Orders of a user, newest first."""
        with self._errors(f"list orders for {user_id}"):
            query = select(OrderRecord).where(OrderRecord.user_id == user_id)
            if side is not None:
                query = query.where(OrderRecord.order_type == side.value)
            query = query.order_by(OrderRecord.created_at.desc())
            if limit is not None:
                query = query.limit(limit)
            return [self._to_entity(r) for r in self.session.scalars(query).all()]

    async def delete_for_user(self, user_id: UUID) -> int:
        with self._errors(f"delete orders for {user_id}"):
            return self._delete_where(OrderRecord, OrderRecord.user_id == user_id)

    @staticmethod
    def _to_entity(record: OrderRecord) -> Order:
        return Order(
            id=record.id,
            user_id=record.user_id,
            symbol=record.stock_symbol,
            side=OrderSide(record.order_type),
            quantity=record.quantity,
            price=record.price,
            mode=OrderMode(record.price_type),
            status=OrderStatus(record.status),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
