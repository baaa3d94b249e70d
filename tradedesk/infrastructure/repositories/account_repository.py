"""
SQLAlchemy Account Repository Implementation

Maps ``profiles`` rows and the user's roles to the Account entity, and
owns deletion of login credentials.
"""

# Standard library imports
import logging
from uuid import UUID

from sqlalchemy import func, or_, select

# Local imports
from tradedesk.domain.entities import Account, Role
from tradedesk.domain.value_objects import ReviewStatus
from tradedesk.infrastructure.database.models import Profile, User, UserRole, UserSession

from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class SqlAlchemyAccountRepository(SqlAlchemyRepository):
    """Account persistence over the ``profiles`` and ``user_roles`` tables."""

    async def get_by_user_id(self, user_id: UUID, for_update: bool = False) -> Account | None:
        with self._errors(f"get account {user_id}"):
            query = select(Profile).where(Profile.user_id == user_id)
            if for_update:
                query = query.with_for_update()
            record = self.session.scalars(query).first()
            if record is None:
                return None
            return self._to_entity(record, self._roles_for([user_id]).get(user_id, set()))

    async def get_many(self, user_ids: list[UUID]) -> dict[UUID, Account]:
        if not user_ids:
            return {}
        with self._errors("load accounts"):
            records = self.session.scalars(
                select(Profile).where(Profile.user_id.in_(user_ids))
            ).all()
            roles = self._roles_for(user_ids)
            return {r.user_id: self._to_entity(r, roles.get(r.user_id, set())) for r in records}

    async def save(self, account: Account) -> Account:
        """
        Insert or update the profile row.

        Roles are granted at registration and are not changed here.
        """
        with self._errors(f"save account {account.user_id}"):
            record = self.session.scalars(
                select(Profile).where(Profile.user_id == account.user_id)
            ).first()
            if record is None:
                record = Profile(id=account.id, user_id=account.user_id, created_at=account.created_at)
                self.session.add(record)

            record.email = account.email
            record.full_name = account.full_name
            record.phone = account.phone
            record.funds = account.funds
            record.is_verified = account.is_verified
            record.verification_status = account.verification_status.value
            record.verification_date = account.verification_date
            record.verification_notes = account.verification_notes
            record.updated_at = account.updated_at
            self.session.flush()

            logger.debug(f"Saved account {account.user_id}")
            return account

    async def list_accounts(
        self,
        search: str | None = None,
        status: ReviewStatus | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[Account], int]:
        with self._errors("list accounts"):
            query = select(Profile)
            if search and search.strip():
                pattern = f"%{search.strip().lower()}%"
                query = query.where(
                    or_(
                        func.lower(Profile.full_name).like(pattern),
                        func.lower(Profile.email).like(pattern),
                    )
                )
            if status is not None:
                query = query.where(Profile.verification_status == status.value)

            total = self.session.scalar(select(func.count()).select_from(query.subquery())) or 0

            query = query.order_by(Profile.created_at.desc()).offset(offset)
            if limit is not None:
                query = query.limit(limit)
            records = self.session.scalars(query).all()

            roles = self._roles_for([r.user_id for r in records])
            return [self._to_entity(r, roles.get(r.user_id, set())) for r in records], total

    async def count_by_status(self) -> dict[str, int]:
        with self._errors("count accounts"):
            return self._status_counts(Profile.verification_status)

    async def delete(self, user_id: UUID) -> None:
        with self._errors(f"delete account {user_id}"):
            self._delete_where(UserRole, UserRole.user_id == user_id)
            self._delete_where(Profile, Profile.user_id == user_id)

    def _roles_for(self, user_ids: list[UUID]) -> dict[UUID, set[str]]:
        roles: dict[UUID, set[str]] = {}
        if not user_ids:
            return roles
        rows = self.session.execute(
            select(UserRole.user_id, UserRole.role).where(UserRole.user_id.in_(user_ids))
        ).all()
        for user_id, role in rows:
            roles.setdefault(user_id, set()).add(role)
        return roles

    @staticmethod
    def _to_entity(record: Profile, roles: set[str]) -> Account:
        return Account(
            id=record.id,
            user_id=record.user_id,
            email=record.email,
            full_name=record.full_name,
            phone=record.phone,
            funds=record.funds,
            verification_status=ReviewStatus(record.verification_status),
            verification_date=record.verification_date,
            verification_notes=record.verification_notes,
            role=Role.ADMIN if Role.ADMIN.value in roles else Role.USER,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class SqlAlchemyCredentialRepository(SqlAlchemyRepository):
    """Login credentials in the ``users`` table."""

    async def exists(self, user_id: UUID) -> bool:
        with self._errors(f"look up user {user_id}"):
            return self.session.get(User, user_id) is not None

    async def delete(self, user_id: UUID) -> None:
        with self._errors(f"delete user {user_id}"):
            self._delete_where(UserSession, UserSession.user_id == user_id)
            self._delete_where(User, User.id == user_id)
