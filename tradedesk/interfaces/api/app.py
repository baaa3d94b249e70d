"""
FastAPI application factory.

Wires configuration, the database, Redis-backed token tracking and the
market data provider into one application. Run with
``uvicorn --factory tradedesk.interfaces.api.app:create_app`` or the
``tradedesk serve`` command.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from tradedesk.application.interfaces.market_data import IMarketDataProvider
from tradedesk.infrastructure.auth import (
    JWTBearer,
    JWTService,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from tradedesk.infrastructure.config import Settings, get_settings
from tradedesk.infrastructure.database import create_engine_from_config, create_session_factory, init_db
from tradedesk.infrastructure.market_data import create_market_data_provider

from .errors import register_exception_handlers
from .routers import admin, auth, funds, health, kyc, market, portfolio, trading, watchlist

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    redis_client: redis.Redis | None = None,
    market_data: IMarketDataProvider | None = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        engine: SQLAlchemy engine; built from ``settings.database`` when omitted
        redis_client: Token store; connected from ``settings.auth.redis_url`` when omitted
        market_data: Quote provider; chosen by ``settings.market_data.provider`` when omitted
    """
    settings = settings or get_settings()
    engine = engine or create_engine_from_config(settings.database)
    owns_redis = redis_client is None
    redis_client = redis_client or redis.from_url(settings.auth.redis_url, decode_responses=True)
    market_data = market_data or create_market_data_provider(settings.market_data)

    session_factory = create_session_factory(engine)
    jwt_service = JWTService(
        redis_client=redis_client,
        private_key_path=settings.auth.private_key_path,
        public_key_path=settings.auth.public_key_path,
        issuer=settings.auth.jwt_issuer,
        audience=settings.auth.jwt_audience,
        access_token_expire_minutes=settings.auth.access_token_expire_minutes,
        refresh_token_expire_days=settings.auth.refresh_token_expire_days,
        environment=settings.app.environment,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info(f"Starting TradeDesk API ({settings.app.environment})")
        init_db(engine)

        yield

        logger.info("Shutting down TradeDesk API")
        if owns_redis:
            redis_client.close()
        engine.dispose()

    app = FastAPI(
        title="TradeDesk API",
        description="Simulated retail trading with an administrator back office",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.redis = redis_client
    app.state.jwt_service = jwt_service
    app.state.jwt_bearer = JWTBearer(jwt_service, session_factory)
    app.state.market_data = market_data

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        max_age=3600,
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    for module in (auth, trading, portfolio, funds, kyc, watchlist, market, admin):
        app.include_router(module.router, prefix="/api")

    return app
