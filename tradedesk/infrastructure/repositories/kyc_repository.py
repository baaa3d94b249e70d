"""
SQLAlchemy KYC Repository Implementation
"""

# Standard library imports
import logging
from uuid import UUID

from sqlalchemy import select

# Local imports
from tradedesk.domain.entities import KycDocuments, KycSubmission
from tradedesk.domain.value_objects import ReviewStatus
from tradedesk.infrastructure.database.models import KycDocument

from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class SqlAlchemyKycRepository(SqlAlchemyRepository):
    async def get(self, kyc_id: UUID, for_update: bool = False) -> KycSubmission | None:
        with self._errors(f"get KYC {kyc_id}"):
            query = select(KycDocument).where(KycDocument.id == kyc_id)
            if for_update:
                query = query.with_for_update()
            record = self.session.scalars(query).first()
            return self._to_entity(record) if record else None

    async def get_for_user(self, user_id: UUID) -> KycSubmission | None:
        with self._errors(f"get KYC for {user_id}"):
            record = self.session.scalars(
                select(KycDocument).where(KycDocument.user_id == user_id)
            ).first()
            return self._to_entity(record) if record else None

    async def save(self, submission: KycSubmission) -> KycSubmission:
        with self._errors(f"save KYC for {submission.user_id}"):
            record = self.session.get(KycDocument, submission.id)
            if record is None:
                record = KycDocument(
                    id=submission.id, user_id=submission.user_id, created_at=submission.created_at
                )
                self.session.add(record)

            documents = submission.documents
            record.aadhar_card_url = documents.aadhar_card_url
            record.pan_card_url = documents.pan_card_url
            record.bank_name = documents.bank_name
            record.account_number = documents.account_number
            record.ifsc_code = documents.ifsc_code
            record.account_holder_name = documents.account_holder_name
            record.kyc_status = submission.kyc_status.value
            record.verified_by = submission.verified_by
            record.verification_date = submission.verification_date
            record.verification_notes = submission.verification_notes
            record.updated_at = submission.updated_at
            self.session.flush()
            return submission

    async def find(self, status: ReviewStatus | None = None) -> list[KycSubmission]:
        with self._errors("list KYC submissions"):
            query = select(KycDocument)
            if status is not None:
                query = query.where(KycDocument.kyc_status == status.value)
            query = query.order_by(KycDocument.created_at.desc())
            return [self._to_entity(r) for r in self.session.scalars(query).all()]

    async def count_by_status(self) -> dict[str, int]:
        with self._errors("count KYC submissions"):
            return self._status_counts(KycDocument.kyc_status)

    async def delete_for_user(self, user_id: UUID) -> int:
        with self._errors(f"delete KYC for {user_id}"):
            return self._delete_where(KycDocument, KycDocument.user_id == user_id)

    @staticmethod
    def _to_entity(record: KycDocument) -> KycSubmission:
        return KycSubmission(
            id=record.id,
            user_id=record.user_id,
            documents=KycDocuments(
                aadhar_card_url=record.aadhar_card_url,
                pan_card_url=record.pan_card_url,
                bank_name=record.bank_name,
                account_number=record.account_number,
                ifsc_code=record.ifsc_code,
                account_holder_name=record.account_holder_name,
            ),
            kyc_status=ReviewStatus(record.kyc_status),
            verified_by=record.verified_by,
            verification_date=record.verification_date,
            verification_notes=record.verification_notes,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
