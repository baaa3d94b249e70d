"""Errors raised by repositories and the unit of work."""

from uuid import UUID


class RepositoryError(Exception):
    """A storage operation failed; ``cause`` keeps the driver's exception."""

    error_code = "repository_error"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class _KeyedRepositoryError(RepositoryError):
    template = "{entity_type} {identifier}"

    def __init__(self, entity_type: str, identifier: UUID | str) -> None:
        super().__init__(self.template.format(entity_type=entity_type, identifier=identifier))
        self.entity_type = entity_type
        self.identifier = identifier


class EntityNotFoundError(_KeyedRepositoryError):
    error_code = "not_found"
    template = "{entity_type} {identifier} not found"


class DuplicateEntityError(_KeyedRepositoryError):
    error_code = "conflict"
    template = "{entity_type} {identifier} already exists"


class TransactionError(RepositoryError):
    """Commit, flush or rollback failed."""

    error_code = "transaction_error"


class TransactionNotActiveError(TransactionError):
    """A repository was used outside ``async with unit_of_work``."""

    def __init__(self) -> None:
        super().__init__("Repository used outside an active unit of work")
