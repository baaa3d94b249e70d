"""Helpers shared by use cases."""

from uuid import UUID

from tradedesk.application.interfaces.exceptions import EntityNotFoundError
from tradedesk.application.interfaces.unit_of_work import IUnitOfWork
from tradedesk.domain.entities import Account
from tradedesk.domain.exceptions import AccountNotVerifiedError


async def require_account(uow: IUnitOfWork, user_id: UUID, for_update: bool = False) -> Account:
    account = await uow.accounts.get_by_user_id(user_id, for_update=for_update)
    if account is None:
        raise EntityNotFoundError("Account", user_id)
    return account


async def require_verified_account(
    uow: IUnitOfWork, user_id: UUID, for_update: bool = True
) -> Account:
    """Load the account, refusing unverified non-admin users."""
    account = await require_account(uow, user_id, for_update=for_update)
    if not account.can_trade:
        raise AccountNotVerifiedError(user_id)
    return account


def matches_search(search: str | None, *values: object) -> bool:
    """Case-insensitive substring match against any of ``values``."""
    if not search:
        return True
    needle = search.strip().lower()
    return any(needle in str(value).lower() for value in values if value is not None)
