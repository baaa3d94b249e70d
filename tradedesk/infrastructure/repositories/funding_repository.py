"""
SQLAlchemy Fund Movement Repositories

Deposit (``fund_requests``) and withdrawal (``withdrawal_requests``)
requests share their review columns and are mapped the same way.
"""

# Standard library imports
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select

# Local imports
from tradedesk.domain.entities import FundRequest, WithdrawalRequest
from tradedesk.domain.value_objects import ReviewStatus
from tradedesk.infrastructure.database.models import FundRequestRecord, WithdrawalRequestRecord

from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class _CashRequestRepository(SqlAlchemyRepository):
    model: Any = None
    label = "request"

    async def get(self, request_id: UUID, for_update: bool = False) -> Any:
        with self._errors(f"get {self.label} {request_id}"):
            query = select(self.model).where(self.model.id == request_id)
            if for_update:
                query = query.with_for_update()
            record = self.session.scalars(query).first()
            return self._to_entity(record) if record else None

    async def save(self, request: Any) -> Any:
        with self._errors(f"save {self.label} {request.id}"):
            record = self.session.get(self.model, request.id)
            if record is None:
                record = self.model(
                    id=request.id, user_id=request.user_id, created_at=request.created_at
                )
                self.session.add(record)

            record.amount = request.amount
            record.status = request.status.value
            record.admin_notes = request.admin_notes
            record.reviewed_by = request.reviewed_by
            record.reviewed_at = request.reviewed_at
            record.updated_at = request.updated_at
            self._write_extra(record, request)
            self.session.flush()
            return request

    async def find(
        self, user_id: UUID | None = None, status: ReviewStatus | None = None
    ) -> list[Any]:
        """Requests newest first, optionally for one user or status."""
        with self._errors(f"list {self.label}s"):
            query = select(self.model)
            if user_id is not None:
                query = query.where(self.model.user_id == user_id)
            if status is not None:
                query = query.where(self.model.status == status.value)
            query = query.order_by(self.model.created_at.desc())
            return [self._to_entity(r) for r in self.session.scalars(query).all()]

    async def count_by_status(self) -> dict[str, int]:
        with self._errors(f"count {self.label}s"):
            return self._status_counts(self.model.status)

    async def delete_for_user(self, user_id: UUID) -> int:
        with self._errors(f"delete {self.label}s for {user_id}"):
            return self._delete_where(self.model, self.model.user_id == user_id)

    def _write_extra(self, record: Any, request: Any) -> None:
        pass

    def _common_fields(self, record: Any) -> dict[str, Any]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "amount": record.amount,
            "status": ReviewStatus(record.status),
            "admin_notes": record.admin_notes,
            "reviewed_by": record.reviewed_by,
            "reviewed_at": record.reviewed_at,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
        }

    def _to_entity(self, record: Any) -> Any:
        raise NotImplementedError


class SqlAlchemyFundRequestRepository(_CashRequestRepository):
    model = FundRequestRecord
    label = "fund request"

    def _write_extra(self, record: FundRequestRecord, request: FundRequest) -> None:
        record.receipt_image_url = request.receipt_image_url

    def _to_entity(self, record: FundRequestRecord) -> FundRequest:
        return FundRequest(
            receipt_image_url=record.receipt_image_url, **self._common_fields(record)
        )


class SqlAlchemyWithdrawalRepository(_CashRequestRepository):
    model = WithdrawalRequestRecord
    label = "withdrawal request"

    def _to_entity(self, record: WithdrawalRequestRecord) -> WithdrawalRequest:
        return WithdrawalRequest(**self._common_fields(record))
