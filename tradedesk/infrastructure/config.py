"""
Configuration Management - Loads settings from environment variables
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class DatabaseConfig:
    """Database configuration settings"""

    url: str = "sqlite:///./tradedesk.db"
    echo: bool = False
    pool_size: int = 5

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load database config from environment variables"""
        return cls(
            url=os.getenv("DATABASE_URL", "sqlite:///./tradedesk.db"),
            echo=_env_bool("DATABASE_ECHO"),
            pool_size=int(os.getenv("DATABASE_POOL_SIZE", "5")),
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


@dataclass
class AuthConfig:
    """Token, password hashing and session settings"""

    jwt_issuer: str = "tradedesk"
    jwt_audience: str = "tradedesk-api"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    private_key_path: str | None = None
    public_key_path: str | None = None
    bcrypt_rounds: int = 12
    max_login_attempts: int = 5
    lockout_minutes: int = 30
    redis_url: str = "redis://localhost:6379/0"

    @classmethod
    def from_env(cls) -> "AuthConfig":
        """Load auth config from environment variables"""
        return cls(
            jwt_issuer=os.getenv("JWT_ISSUER", "tradedesk"),
            jwt_audience=os.getenv("JWT_AUDIENCE", "tradedesk-api"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")),
            refresh_token_expire_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")),
            private_key_path=os.getenv("JWT_PRIVATE_KEY_PATH"),
            public_key_path=os.getenv("JWT_PUBLIC_KEY_PATH"),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            max_login_attempts=int(os.getenv("MAX_LOGIN_ATTEMPTS", "5")),
            lockout_minutes=int(os.getenv("LOCKOUT_MINUTES", "30")),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
        )


@dataclass
class MarketDataConfig:
    """Third-party stock data API settings"""

    base_url: str = "https://stock.indianapi.in"
    api_key: str | None = None
    timeout_seconds: float = 10.0
    provider: str = "indianapi"

    @classmethod
    def from_env(cls) -> "MarketDataConfig":
        """Load market data config from environment variables"""
        return cls(
            base_url=os.getenv("INDIAN_STOCK_API_URL", "https://stock.indianapi.in"),
            api_key=os.getenv("INDIAN_STOCK_API_KEY"),
            timeout_seconds=float(os.getenv("MARKET_DATA_TIMEOUT", "10")),
            provider=os.getenv("MARKET_DATA_PROVIDER", "indianapi"),
        )


@dataclass
class AppConfig:
    """Process-wide settings"""

    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load application config from environment variables"""
        origins = os.getenv("CORS_ORIGINS", "http://localhost:5173")
        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_json=_env_bool("LOG_JSON"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=int(os.getenv("API_PORT", "8000")),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass
class Settings:
    """Application configuration"""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    market_data: MarketDataConfig = field(default_factory=MarketDataConfig)
    app: AppConfig = field(default_factory=AppConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load all configuration from environment variables"""
        settings = cls(
            database=DatabaseConfig.from_env(),
            auth=AuthConfig.from_env(),
            market_data=MarketDataConfig.from_env(),
            app=AppConfig.from_env(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """
        Reject settings the application cannot run with.

        Raises:
            ValueError: If a setting is out of range
        """
        if self.auth.access_token_expire_minutes <= 0:
            raise ValueError("ACCESS_TOKEN_EXPIRE_MINUTES must be positive")
        if self.auth.refresh_token_expire_days <= 0:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be positive")
        if not 4 <= self.auth.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        if self.market_data.timeout_seconds <= 0:
            raise ValueError("MARKET_DATA_TIMEOUT must be positive")
        if self.app.is_production and not self.auth.private_key_path:
            raise ValueError("JWT_PRIVATE_KEY_PATH is required in production")
        if self.market_data.provider not in ("indianapi", "static"):
            raise ValueError(f"Unknown MARKET_DATA_PROVIDER: {self.market_data.provider}")
        if not self.market_data.api_key and self.market_data.provider == "indianapi":
            logger.warning("INDIAN_STOCK_API_KEY not set; market data endpoints will return 503")


# Global configuration instance (lazy-loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global configuration instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
