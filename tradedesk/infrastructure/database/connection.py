"""
Database Connection Management

Engine and session factory construction for SQLAlchemy. PostgreSQL in
deployment, SQLite for development and tests.
"""

import logging
from collections.abc import Callable

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tradedesk.infrastructure.config import DatabaseConfig

from .models import Base

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_config(config: DatabaseConfig) -> Engine:
    """
    Create the SQLAlchemy engine.

    An in-memory SQLite URL gets a single shared connection so every
    session sees the same database.
    """
    if config.is_sqlite:
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in config.url or config.url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(config.url, echo=config.echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(
            config.url,
            echo=config.echo,
            pool_size=config.pool_size,
            pool_pre_ping=True,
        )

    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(engine)
    logger.info("Database schema initialized")


def check_connection(engine: Engine) -> bool:
    """Run a trivial query; used by the health endpoint."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
