"""Fields every use case request carries."""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4


@dataclass(kw_only=True)
class BaseRequestDTO:
    """
    Common request fields.

    ``request_id`` ties the use case's log lines together and is echoed on
    the response. ``actor_id`` is whoever triggered the request, which for
    back-office operations is the administrator rather than the account
    being changed. Keyword-only so subclasses can declare required fields.
    """

    request_id: UUID = field(default_factory=uuid4)
    actor_id: UUID | None = None

    def log_context(self) -> dict[str, Any]:
        context: dict[str, Any] = {"request_id": str(self.request_id)}
        if self.actor_id is not None:
            context["actor_id"] = str(self.actor_id)
        return context
