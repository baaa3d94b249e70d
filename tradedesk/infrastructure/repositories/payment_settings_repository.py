"""
SQLAlchemy Payment Settings Repository Implementation

Company bank accounts (``bank_details``) and UPI handles
(``upi_details``) that users pay deposits into.
"""

# Standard library imports
import logging
from uuid import UUID

from sqlalchemy import select

# Local imports
from tradedesk.domain.entities import BankDetail, UpiDetail
from tradedesk.infrastructure.database.models import BankDetailRecord, UpiDetailRecord

from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class SqlAlchemyPaymentSettingsRepository(SqlAlchemyRepository):
    async def get_bank(self, bank_id: UUID) -> BankDetail | None:
        with self._errors(f"get bank detail {bank_id}"):
            record = self.session.get(BankDetailRecord, bank_id)
            return self._bank_entity(record) if record else None

    async def save_bank(self, bank: BankDetail) -> BankDetail:
        with self._errors(f"save bank detail {bank.id}"):
            record = self.session.get(BankDetailRecord, bank.id)
            if record is None:
                record = BankDetailRecord(id=bank.id, created_at=bank.created_at)
                self.session.add(record)
            record.account_name = bank.account_name
            record.account_number = bank.account_number
            record.bank_name = bank.bank_name
            record.branch = bank.branch
            record.ifsc_code = bank.ifsc_code
            record.is_active = bank.is_active
            record.updated_at = bank.updated_at
            self.session.flush()
            return bank

    async def list_banks(self, active_only: bool = False) -> list[BankDetail]:
        with self._errors("list bank details"):
            query = select(BankDetailRecord)
            if active_only:
                query = query.where(BankDetailRecord.is_active.is_(True))
            query = query.order_by(BankDetailRecord.created_at.desc())
            return [self._bank_entity(r) for r in self.session.scalars(query).all()]

    async def get_upi(self, upi_id: UUID) -> UpiDetail | None:
        with self._errors(f"get UPI detail {upi_id}"):
            record = self.session.get(UpiDetailRecord, upi_id)
            return self._upi_entity(record) if record else None

    async def save_upi(self, upi: UpiDetail) -> UpiDetail:
        with self._errors(f"save UPI detail {upi.id}"):
            record = self.session.get(UpiDetailRecord, upi.id)
            if record is None:
                record = UpiDetailRecord(id=upi.id, created_at=upi.created_at)
                self.session.add(record)
            record.upi_id = upi.upi_id
            record.upi_name = upi.upi_name
            record.description = upi.description
            record.is_active = upi.is_active
            record.updated_at = upi.updated_at
            self.session.flush()
            return upi

    async def delete_upi(self, upi_id: UUID) -> None:
        with self._errors(f"delete UPI detail {upi_id}"):
            self._delete_where(UpiDetailRecord, UpiDetailRecord.id == upi_id)

    async def list_upis(self, active_only: bool = False) -> list[UpiDetail]:
        with self._errors("list UPI details"):
            query = select(UpiDetailRecord)
            if active_only:
                query = query.where(UpiDetailRecord.is_active.is_(True))
            query = query.order_by(UpiDetailRecord.created_at.desc())
            return [self._upi_entity(r) for r in self.session.scalars(query).all()]

    @staticmethod
    def _bank_entity(record: BankDetailRecord) -> BankDetail:
        return BankDetail(
            id=record.id,
            account_name=record.account_name,
            account_number=record.account_number,
            bank_name=record.bank_name,
            branch=record.branch,
            ifsc_code=record.ifsc_code,
            is_active=bool(record.is_active),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    def _upi_entity(record: UpiDetailRecord) -> UpiDetail:
        return UpiDetail(
            id=record.id,
            upi_id=record.upi_id,
            upi_name=record.upi_name,
            description=record.description,
            is_active=bool(record.is_active),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
