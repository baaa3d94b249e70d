"""
RS256 access and refresh tokens with Redis-backed revocation.

An access token is honoured only while its ``jwt:valid:<jti>`` marker
exists, so logout, password change and account deletion take effect
immediately. Refresh tokens rotate on every use; each family remembers
its newest token id, and presenting an older one burns the family.
"""

import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import redis
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"

# How long revocation markers outlive the tokens they block
BLACKLIST_TTL_SECONDS = 86400

REQUIRED_CLAIMS = ["exp", "iat", "sub", "jti"]


class TokenExpiredException(Exception):
    """Raised when a token has expired."""


class TokenRevokedException(Exception):
    """Raised when a token has been revoked."""


class InvalidTokenException(Exception):
    """Raised when a token is malformed, mis-signed or meant for another audience."""


class TokenReuseException(Exception):
    """Raised when an already rotated refresh token comes back."""


def _load_key_pair(
    private_key_path: str | None, public_key_path: str | None, environment: str
) -> tuple[Any, Any]:
    if private_key_path and os.path.exists(private_key_path):
        with open(private_key_path, "rb") as f:
            private_key = serialization.load_pem_private_key(f.read(), password=None)
        if public_key_path and os.path.exists(public_key_path):
            with open(public_key_path, "rb") as f:
                return private_key, serialization.load_pem_public_key(f.read())
        return private_key, private_key.public_key()

    if environment == "production":
        raise InvalidTokenException(
            "JWT_PRIVATE_KEY_PATH must point at an RSA key in production "
            "(openssl genrsa -out private_key.pem 2048)"
        )
    logger.warning("No JWT signing key configured; using a throwaway key until restart")
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key, private_key.public_key()


class JWTService:
    """Issues, verifies and revokes the tokens behind every TradeDesk login."""

    def __init__(
        self,
        redis_client: redis.Redis,
        private_key_path: str | None = None,
        public_key_path: str | None = None,
        issuer: str = "tradedesk",
        audience: str = "tradedesk-api",
        access_token_expire_minutes: int = 15,
        refresh_token_expire_days: int = 7,
        environment: str = "development",
    ) -> None:
        self.redis = redis_client
        self.issuer = issuer
        self.audience = audience
        self.refresh_audience = f"{audience}/refresh"
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)
        self.refresh_token_expire = timedelta(days=refresh_token_expire_days)

        private_key, public_key = _load_key_pair(private_key_path, public_key_path, environment)
        self._private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        self._public_pem = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        self.key_id = f"tradedesk-{datetime.now(timezone.utc):%Y-%m}"

    @property
    def access_token_ttl(self) -> int:
        return int(self.access_token_expire.total_seconds())

    @property
    def refresh_token_ttl(self) -> int:
        return int(self.refresh_token_expire.total_seconds())

    def _sign(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self._private_pem, algorithm=ALGORITHM, headers={"kid": self.key_id})

    def _decode(self, token: str, audience: str, kind: str) -> dict[str, Any]:
        try:
            return dict(
                jwt.decode(
                    token,
                    self._public_pem,
                    algorithms=[ALGORITHM],
                    issuer=self.issuer,
                    audience=audience,
                    options={"require": REQUIRED_CLAIMS},
                )
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException(f"{kind.capitalize()} token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenException(f"Invalid {kind} token: {e}")

    def create_access_token(
        self,
        user_id: str,
        email: str,
        roles: list[str],
        session_id: str,
        custom_claims: dict[str, Any] | None = None,
    ) -> str:
        """
        Sign an access token and register its id for revocation.

        The id is indexed under both the user and the session so either
        can be logged out in one call.
        """
        now = datetime.now(timezone.utc)
        jti = f"jwt_{secrets.token_urlsafe(16)}"
        claims = {
            "iss": self.issuer,
            "aud": [self.audience],
            "sub": user_id,
            "iat": now,
            "nbf": now,
            "exp": now + self.access_token_expire,
            "jti": jti,
            "sid": session_id,
            "email": email,
            "roles": roles,
            **(custom_claims or {}),
        }
        token = self._sign(claims)

        ttl = self.access_token_ttl
        self.redis.setex(f"jwt:valid:{jti}", ttl, "1")
        for index in (f"user:tokens:{user_id}", f"session:tokens:{session_id}"):
            self.redis.sadd(index, jti)
            self.redis.expire(index, ttl)

        logger.debug(f"Issued access token {jti} for user {user_id}")
        return token

    def create_refresh_token(
        self, user_id: str, session_id: str, token_family: str | None = None
    ) -> str:
        """Sign a refresh token and make it the newest member of its family."""
        now = datetime.now(timezone.utc)
        jti = f"refresh_{secrets.token_urlsafe(16)}"
        family = token_family or f"family_{secrets.token_urlsafe(8)}"
        token = self._sign(
            {
                "iss": self.issuer,
                "aud": [self.refresh_audience],
                "sub": user_id,
                "iat": now,
                "exp": now + self.refresh_token_expire,
                "jti": jti,
                "sid": session_id,
                "token_family": family,
                "type": "refresh",
            }
        )
        self.redis.setex(f"refresh:family:{family}", self.refresh_token_ttl, jti)
        return token

    def verify_access_token(self, token: str) -> dict[str, Any]:
        """
        Decode an access token and check it has not been revoked.

        Raises:
            TokenExpiredException: If token is expired
            TokenRevokedException: If token is revoked
            InvalidTokenException: If token is invalid
        """
        payload = self._decode(token, self.audience, "access")
        jti = payload["jti"]
        if self.redis.get(f"jwt:blacklist:{jti}") or not self.redis.get(f"jwt:valid:{jti}"):
            logger.info(f"Refused revoked access token {jti}")
            raise TokenRevokedException("Token has been revoked")
        return payload

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        """
        Decode a refresh token and check it is the newest of its family.

        Raises:
            TokenExpiredException: If token is expired
            TokenReuseException: If an already rotated token is presented
            TokenRevokedException: If the family was revoked
            InvalidTokenException: If token is invalid
        """
        payload = self._decode(token, self.refresh_audience, "refresh")
        jti = payload["jti"]
        family = payload.get("token_family")

        newest = self.redis.get(f"refresh:family:{family}")
        if self.redis.get(f"refresh:blacklist:{jti}") or (newest and newest != jti):
            logger.warning(f"Refresh token reuse in family {family}; revoking the family")
            self.revoke_token_family(family)
            raise TokenReuseException("Refresh token reuse detected - all tokens revoked")
        if not newest:
            raise TokenRevokedException("Refresh token has been revoked")
        return payload

    def rotate_refresh_token(
        self, old_token: str, email: str, roles: list[str]
    ) -> tuple[str, str]:
        """Trade a refresh token for a new (access, refresh) pair in the same family."""
        payload = self.verify_refresh_token(old_token)
        user_id, session_id = payload["sub"], payload["sid"]

        self.redis.setex(f"refresh:blacklist:{payload['jti']}", self.refresh_token_ttl, "1")
        refresh = self.create_refresh_token(user_id, session_id, payload["token_family"])
        access = self.create_access_token(
            user_id=user_id, email=email, roles=roles, session_id=session_id
        )
        return access, refresh

    def revoke_token(self, jti: str) -> None:
        self.redis.delete(f"jwt:valid:{jti}")
        self.redis.setex(f"jwt:blacklist:{jti}", BLACKLIST_TTL_SECONDS, "1")

    def revoke_token_family(self, token_family: str | None) -> None:
        if token_family:
            self.redis.delete(f"refresh:family:{token_family}")

    def _revoke_indexed(self, index: str) -> int:
        jtis = self.redis.smembers(index) or set()
        for jti in jtis:
            self.revoke_token(jti)
        self.redis.delete(index)
        return len(jtis)

    def revoke_session_tokens(self, session_id: str, token_family: str | None = None) -> None:
        """Revoke a session's access tokens and, when given, its refresh family."""
        count = self._revoke_indexed(f"session:tokens:{session_id}")
        self.revoke_token_family(token_family)
        logger.info(f"Revoked {count} access tokens for session {session_id}")

    def revoke_all_user_tokens(self, user_id: str) -> None:
        count = self._revoke_indexed(f"user:tokens:{user_id}")
        logger.info(f"Revoked {count} access tokens for user {user_id}")
