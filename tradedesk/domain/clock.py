"""Timestamp helpers shared by entities and persistence."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(UTC).replace(tzinfo=None)
