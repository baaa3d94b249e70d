"""
Log setup for the API and the management commands.

Records pick up the request's correlation id, the signed-in user and the
active OpenTelemetry span from context variables. With ``LOG_JSON`` on,
each record becomes one JSON line with credentials, tokens, bank account
numbers and KYC document links masked out.
"""

import json
import logging
import re
import sys
import uuid
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from opentelemetry import trace

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)

CONTEXT_FIELDS = ("correlation_id", "user_id", "session_id", "trace_id", "span_id")

# Attributes every LogRecord has; anything else came in through ``extra``
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    *CONTEXT_FIELDS,
}

MASK = "***MASKED***"

SENSITIVE_KEYS = (
    r"api[_-]?key",
    r"access[_-]?token",
    r"refresh[_-]?token",
    r"authorization",
    r"account[_-]?number",
    r"aadhar",
    r"pan[_-]?card",
)

# Dropped from ``extra`` entirely
DROPPED_KEYS = frozenset({"password", "password_hash", "secret", "private_key", "token"})


class SensitiveDataMasker:
    """Hides secret values in messages and ``extra`` dictionaries."""

    def __init__(
        self,
        sensitive_keys: Iterable[str] = SENSITIVE_KEYS,
        dropped_keys: Iterable[str] = DROPPED_KEYS,
    ) -> None:
        keys = "|".join(f"(?:{k})" for k in sensitive_keys)
        self._key = re.compile(keys, re.IGNORECASE)
        # "key": "value" | key=value | key: value
        self._pair = re.compile(
            rf'(?P<head>"?(?:{keys})"?\s*(?P<sep>[:=])\s*)(?P<value>"[^"]*"|\S+)', re.IGNORECASE
        )
        self._dropped = frozenset(k.lower() for k in dropped_keys)

    def mask_message(self, message: str) -> str:
        def hide(match: re.Match[str]) -> str:
            quoted = match.group("value").startswith('"')
            return match.group("head") + (f'"{MASK}"' if quoted else MASK)

        return self._pair.sub(hide, message)

    def mask_extra_fields(self, extra: dict[str, Any]) -> dict[str, Any]:
        masked: dict[str, Any] = {}
        for key, value in extra.items():
            if key.lower() in self._dropped:
                continue
            if self._key.search(key):
                masked[key] = MASK
            elif isinstance(value, dict):
                masked[key] = self.mask_extra_fields(value)
            elif isinstance(value, str):
                masked[key] = self.mask_message(value)
            else:
                masked[key] = value
        return masked


class ContextFilter(logging.Filter):
    """Stamps correlation, user and trace identifiers onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        record.user_id = user_id_var.get()
        record.session_id = session_id_var.get()

        span = trace.get_current_span()
        context = span.get_span_context()
        recording = span.is_recording() and context.trace_id
        record.trace_id = format(context.trace_id, "032x") if recording else None
        record.span_id = format(context.span_id, "016x") if recording else None
        return True


def _jsonable(value: Any) -> Any:
    if isinstance(value, (Decimal, UUID, datetime)):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return value


class JSONFormatter(logging.Formatter):
    def __init__(self, masker: SensitiveDataMasker | None = None) -> None:
        super().__init__()
        self.masker = masker or SensitiveDataMasker()

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self.masker.mask_message(record.getMessage()),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value:
                entry[name] = value

        extra = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}
        if extra:
            entry["extra"] = _jsonable(self.masker.mask_extra_fields(extra))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str, None, None]:
    """Run a block under a correlation id, restoring the previous one afterwards."""
    token = correlation_id_var.set(correlation_id or str(uuid.uuid4()))
    try:
        yield correlation_id_var.get()  # type: ignore[misc]
    finally:
        correlation_id_var.reset(token)


def set_user_context(user_id: str | None, session_id: str | None = None) -> None:
    user_id_var.set(user_id)
    session_id_var.set(session_id)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Replace the root handlers with one stdout handler carrying request context."""
    formatter: logging.Formatter = (
        JSONFormatter()
        if json_logs
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s")
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    logging.getLogger(__name__).debug(f"Logging configured at {level.upper()}")
