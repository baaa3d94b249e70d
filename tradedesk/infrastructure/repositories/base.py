"""
Shared plumbing for the SQLAlchemy repositories.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tradedesk.application.interfaces.exceptions import RepositoryError
from tradedesk.domain.value_objects import ReviewStatus

logger = logging.getLogger(__name__)


class SqlAlchemyRepository:
    """Base class holding the unit of work's session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _errors(self, operation: str) -> Generator[None, None, None]:
        """Translate driver failures into ``RepositoryError``."""
        try:
            yield
        except RepositoryError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Failed to {operation}: {e}")
            raise RepositoryError(f"Failed to {operation}: {e}", cause=e) from e

    def _delete_where(self, model: Any, *criteria: Any) -> int:
        result = self.session.execute(delete(model).where(*criteria))
        return result.rowcount or 0

    def _status_counts(self, column: Any) -> dict[str, int]:
        """Row count per review status, zero for statuses with no rows."""
        rows = self.session.execute(select(column, func.count()).group_by(column)).all()
        counts = {status.value: 0 for status in ReviewStatus}
        for status, count in rows:
            counts[status] = count
        return counts
