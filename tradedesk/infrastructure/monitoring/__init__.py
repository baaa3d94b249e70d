"""Logging and request correlation."""

from .logging import (
    configure_logging,
    correlation_context,
    correlation_id_var,
    get_correlation_id,
    set_correlation_id,
    set_user_context,
    user_id_var,
)

__all__ = [
    "configure_logging",
    "correlation_context",
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
    "set_user_context",
    "user_id_var",
]
