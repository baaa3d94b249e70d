"""Global pytest configuration and fixtures."""

# Standard library imports
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID

# Third-party imports
import pytest
import redis
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# Local imports
from tradedesk.domain.clock import utc_now
from tradedesk.domain.value_objects import ReviewStatus
from tradedesk.infrastructure.auth import JWTService
from tradedesk.infrastructure.config import (
    AppConfig,
    AuthConfig,
    DatabaseConfig,
    MarketDataConfig,
    Settings,
)
from tradedesk.infrastructure.database import (
    create_engine_from_config,
    create_session_factory,
    init_db,
)
from tradedesk.infrastructure.database.models import Profile, UserRole
from tradedesk.infrastructure.market_data import StaticMarketDataProvider
from tradedesk.interfaces.api import create_app

PASSWORD = "Tr@de-Desk#2024x"
ADMIN_EMAIL = "admin@example.com"


def make_redis_mock() -> MagicMock:
    """
    ``MagicMock(spec=redis.Redis)`` backed by dictionaries.

    Covers the string and set commands the token service issues, with
    values stored as ``str`` as on a ``decode_responses=True`` client.
    """
    values: dict[str, str] = {}
    sets: dict[str, set[str]] = {}
    client = MagicMock(spec=redis.Redis)

    def setex(key: str, ttl: int, value: Any) -> bool:
        values[key] = str(value)
        return True

    def delete(*keys: str) -> int:
        removed = 0
        for key in keys:
            removed += int(values.pop(key, None) is not None)
            removed += int(sets.pop(key, None) is not None)
        return removed

    def sadd(key: str, *members: str) -> int:
        bucket = sets.setdefault(key, set())
        before = len(bucket)
        bucket.update(members)
        return len(bucket) - before

    client.get.side_effect = values.get
    client.setex.side_effect = setex
    client.delete.side_effect = delete
    client.sadd.side_effect = sadd
    client.smembers.side_effect = lambda key: set(sets.get(key, set()))
    client.expire.return_value = True
    return client


@pytest.fixture(scope="session")
def jwt_key_paths(tmp_path_factory: pytest.TempPathFactory) -> tuple[str, str]:
    """One RSA key pair on disk for the whole run; generating keys is slow."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    directory = tmp_path_factory.mktemp("keys")
    private_path = directory / "private_key.pem"
    public_path = directory / "public_key.pem"
    private_path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return str(private_path), str(public_path)


@pytest.fixture
def settings(jwt_key_paths: tuple[str, str]) -> Settings:
    """Test settings: in-memory SQLite, cheap bcrypt, static quotes."""
    private_key_path, public_key_path = jwt_key_paths
    return Settings(
        database=DatabaseConfig(url="sqlite://"),
        auth=AuthConfig(
            private_key_path=private_key_path,
            public_key_path=public_key_path,
            bcrypt_rounds=4,
        ),
        market_data=MarketDataConfig(provider="static"),
        app=AppConfig(environment="test"),
    )


@pytest.fixture
def engine(settings: Settings) -> Generator[Engine, None, None]:
    engine = create_engine_from_config(settings.database)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_client() -> MagicMock:
    return make_redis_mock()


@pytest.fixture
def jwt_service(redis_client: MagicMock, jwt_key_paths: tuple[str, str]) -> JWTService:
    private_key_path, public_key_path = jwt_key_paths
    return JWTService(
        redis_client=redis_client,
        private_key_path=private_key_path,
        public_key_path=public_key_path,
    )


@pytest.fixture
def market_data() -> StaticMarketDataProvider:
    return StaticMarketDataProvider()


@pytest.fixture
def app(
    settings: Settings,
    engine: Engine,
    redis_client: MagicMock,
    market_data: StaticMarketDataProvider,
) -> FastAPI:
    return create_app(
        settings=settings, engine=engine, redis_client=redis_client, market_data=market_data
    )


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


class TradeDeskApi:
    """Multi-step helpers over the test client: sign-up, login, approval."""

    def __init__(self, client: TestClient, session_factory: sessionmaker[Session]) -> None:
        self.client = client
        self.session_factory = session_factory
        self._admin_headers: dict[str, str] | None = None

    def register(
        self, email: str, password: str = PASSWORD, full_name: str = "Test Trader"
    ) -> str:
        response = self.client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "full_name": full_name},
        )
        assert response.status_code == 201, response.text
        return str(response.json()["user_id"])

    def login(self, email: str, password: str = PASSWORD) -> dict[str, Any]:
        response = self.client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return dict(response.json())

    def headers(self, email: str, password: str = PASSWORD) -> dict[str, str]:
        return bearer(self.login(email, password)["access_token"])

    def admin_headers(self) -> dict[str, str]:
        """Register an approved administrator once per test and log in."""
        if self._admin_headers is None:
            user_id = self.register(ADMIN_EMAIL, full_name="Back Office")
            with self.session_factory() as session:
                session.add(UserRole(user_id=UUID(user_id), role="admin"))
                profile = session.scalars(
                    select(Profile).where(Profile.user_id == UUID(user_id))
                ).one()
                profile.is_verified = True
                profile.verification_status = ReviewStatus.APPROVED.value
                profile.verification_date = utc_now()
                session.commit()
            self._admin_headers = self.headers(ADMIN_EMAIL)
        return self._admin_headers

    def approve(self, user_id: str) -> None:
        response = self.client.post(
            f"/api/admin/accounts/{user_id}/verification",
            json={"decision": "approved"},
            headers=self.admin_headers(),
        )
        assert response.status_code == 200, response.text

    def add_funds(self, user_id: str, amount: str) -> None:
        response = self.client.post(
            f"/api/admin/accounts/{user_id}/funds",
            json={"amount": amount, "operation": "add"},
            headers=self.admin_headers(),
        )
        assert response.status_code == 200, response.text

    def verified_trader(
        self, email: str, funds: str | None = None
    ) -> tuple[str, dict[str, str]]:
        """An approved user, optionally funded, with fresh auth headers."""
        user_id = self.register(email)
        self.approve(user_id)
        if funds is not None:
            self.add_funds(user_id, funds)
        return user_id, self.headers(email)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api(client: TestClient, session_factory: sessionmaker[Session]) -> TradeDeskApi:
    return TradeDeskApi(client, session_factory)
