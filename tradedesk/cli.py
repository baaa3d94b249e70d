"""
Command line entry points.

``tradedesk serve`` runs the API; ``tradedesk refresh-prices`` runs the
portfolio price job once and is meant for a scheduler such as cron.
"""

import asyncio
import logging
import sys

import click
from sqlalchemy import select

from tradedesk.application.use_cases.portfolio import RefreshPortfolioPricesUseCase, RefreshPricesRequest
from tradedesk.domain.clock import utc_now
from tradedesk.domain.entities import Role
from tradedesk.domain.value_objects import ReviewStatus
from tradedesk.infrastructure.auth import PasswordHasher, UserService
from tradedesk.infrastructure.config import get_settings
from tradedesk.infrastructure.database import create_engine_from_config, create_session_factory, init_db
from tradedesk.infrastructure.database.models import Profile, User
from tradedesk.infrastructure.market_data import create_market_data_provider
from tradedesk.infrastructure.monitoring import configure_logging
from tradedesk.infrastructure.repositories import SqlAlchemyUnitOfWork

logger = logging.getLogger(__name__)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """TradeDesk management commands."""
    settings = get_settings()
    configure_logging(log_level or settings.app.log_level, settings.app.log_json)
    ctx.obj = settings


@cli.command()
@click.option("--host", default=None, help="Bind address (default API_HOST)")
@click.option("--port", type=int, default=None, help="Port (default API_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
@click.pass_obj
def serve(settings, host: str | None, port: int | None, reload: bool) -> None:  # type: ignore[no-untyped-def]
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "tradedesk.interfaces.api.app:create_app",
        factory=True,
        host=host or settings.app.host,
        port=port or settings.app.port,
        reload=reload,
        log_config=None,
    )


@cli.command("init-db")
@click.pass_obj
def init_database(settings) -> None:  # type: ignore[no-untyped-def]
    """Create all tables."""
    engine = create_engine_from_config(settings.database)
    init_db(engine)
    click.echo("Database initialized")


@cli.command("refresh-prices")
@click.pass_obj
def refresh_prices(settings) -> None:  # type: ignore[no-untyped-def]
    """Mark every held symbol to its latest price, once."""
    engine = create_engine_from_config(settings.database)
    uow = SqlAlchemyUnitOfWork(create_session_factory(engine))
    use_case = RefreshPortfolioPricesUseCase(uow, create_market_data_provider(settings.market_data))

    response = asyncio.run(use_case.execute(RefreshPricesRequest()))
    if not response.success:
        click.echo(f"Price refresh failed: {response.error}", err=True)
        sys.exit(1)
    click.echo(response.message)


@cli.command("create-admin")
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--full-name", default="Administrator")
@click.pass_obj
def create_admin(settings, email: str, password: str, full_name: str) -> None:  # type: ignore[no-untyped-def]
    """Register an administrator whose account is already verified."""
    engine = create_engine_from_config(settings.database)
    init_db(engine)
    db = create_session_factory(engine)()
    try:
        service = UserService(
            db,
            jwt_service=None,  # type: ignore[arg-type]  # registration issues no tokens
            password_hasher=PasswordHasher(settings.auth.bcrypt_rounds),
        )
        try:
            result = asyncio.run(
                service.register_user(
                    email=email,
                    password=password,
                    full_name=full_name,
                    roles=[Role.USER.value, Role.ADMIN.value],
                )
            )
        except ValueError as e:
            click.echo(f"Could not create administrator: {e}", err=True)
            sys.exit(1)

        profile = db.scalars(
            select(Profile).join(User, User.id == Profile.user_id).where(User.email == result.email)
        ).one()
        profile.is_verified = True
        profile.verification_status = ReviewStatus.APPROVED.value
        profile.verification_date = utc_now()
        db.commit()
        click.echo(f"Administrator {result.email} created ({result.user_id})")
    finally:
        db.close()


def main() -> None:
    cli()


def serve_main() -> None:
    cli(["serve"])


def refresh_prices_main() -> None:
    """Console script for schedulers: ``tradedesk-refresh-prices``."""
    cli(["refresh-prices"])


if __name__ == "__main__":
    main()
