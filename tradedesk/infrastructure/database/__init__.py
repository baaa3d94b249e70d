"""Database models, engine and session factory."""

from .connection import (
    SessionFactory,
    check_connection,
    create_engine_from_config,
    create_session_factory,
    init_db,
)
from .models import Base

__all__ = [
    "Base",
    "SessionFactory",
    "check_connection",
    "create_engine_from_config",
    "create_session_factory",
    "init_db",
]
