"""
Unit tests for JWTService.

Tests cover:
- Access token creation and verification
- Revocation of single tokens, sessions and users
- Refresh token rotation and reuse detection
- Key loading rules per environment
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from tradedesk.infrastructure.auth import (
    InvalidTokenException,
    JWTService,
    TokenExpiredException,
    TokenReuseException,
    TokenRevokedException,
)
from tradedesk.infrastructure.auth.jwt_service import BLACKLIST_TTL_SECONDS


def issue_access(jwt_service, user_id="user-1", session_id="session-1"):
    return jwt_service.create_access_token(
        user_id=user_id, email="trader@example.com", roles=["user"], session_id=session_id
    )


class TestAccessTokens:
    def test_round_trip(self, jwt_service):
        token = issue_access(jwt_service)

        payload = jwt_service.verify_access_token(token)

        assert payload["sub"] == "user-1"
        assert payload["sid"] == "session-1"
        assert payload["roles"] == ["user"]
        assert payload["iss"] == "tradedesk"
        assert jwt.get_unverified_header(token)["alg"] == "RS256"

    def test_custom_claims_are_included(self, jwt_service):
        token = jwt_service.create_access_token(
            user_id="user-1",
            email="trader@example.com",
            roles=["admin"],
            session_id="s",
            custom_claims={"verification_status": "approved"},
        )

        assert jwt_service.verify_access_token(token)["verification_status"] == "approved"

    def test_revoked_token_is_rejected(self, jwt_service, redis_client):
        token = issue_access(jwt_service)
        jti = jwt.decode(token, options={"verify_signature": False})["jti"]

        jwt_service.revoke_token(jti)

        with pytest.raises(TokenRevokedException):
            jwt_service.verify_access_token(token)
        redis_client.setex.assert_any_call(f"jwt:blacklist:{jti}", BLACKLIST_TTL_SECONDS, "1")

    def test_token_unknown_to_redis_is_rejected(self, jwt_service, redis_client):
        token = issue_access(jwt_service)
        redis_client.get.side_effect = lambda key: None

        with pytest.raises(TokenRevokedException):
            jwt_service.verify_access_token(token)

    def test_expired_token(self, jwt_service):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {
                "iss": "tradedesk",
                "aud": ["tradedesk-api"],
                "sub": "user-1",
                "jti": "jwt_old",
                "iat": past,
                "exp": past + timedelta(minutes=15),
            },
            jwt_service._private_pem,
            algorithm="RS256",
        )

        with pytest.raises(TokenExpiredException):
            jwt_service.verify_access_token(token)

    def test_refresh_token_is_not_an_access_token(self, jwt_service):
        refresh = jwt_service.create_refresh_token(user_id="user-1", session_id="session-1")

        with pytest.raises(InvalidTokenException):
            jwt_service.verify_access_token(refresh)

    def test_garbage_token(self, jwt_service):
        with pytest.raises(InvalidTokenException):
            jwt_service.verify_access_token("not.a.jwt")

    def test_revoke_all_user_tokens(self, jwt_service):
        first = issue_access(jwt_service, session_id="a")
        second = issue_access(jwt_service, session_id="b")
        other_user = issue_access(jwt_service, user_id="user-2")

        jwt_service.revoke_all_user_tokens("user-1")

        for token in (first, second):
            with pytest.raises(TokenRevokedException):
                jwt_service.verify_access_token(token)
        assert jwt_service.verify_access_token(other_user)["sub"] == "user-2"

    def test_revoke_session_tokens(self, jwt_service):
        in_session = issue_access(jwt_service, session_id="a")
        elsewhere = issue_access(jwt_service, session_id="b")

        jwt_service.revoke_session_tokens("a")

        with pytest.raises(TokenRevokedException):
            jwt_service.verify_access_token(in_session)
        jwt_service.verify_access_token(elsewhere)


class TestRefreshRotation:
    def test_rotation_issues_new_pair(self, jwt_service):
        refresh = jwt_service.create_refresh_token(user_id="user-1", session_id="session-1")

        access, new_refresh = jwt_service.rotate_refresh_token(
            refresh, email="trader@example.com", roles=["user"]
        )

        assert jwt_service.verify_access_token(access)["sid"] == "session-1"
        assert jwt_service.verify_refresh_token(new_refresh)["sub"] == "user-1"

    def test_reuse_revokes_family(self, jwt_service):
        refresh = jwt_service.create_refresh_token(user_id="user-1", session_id="session-1")
        _, new_refresh = jwt_service.rotate_refresh_token(
            refresh, email="trader@example.com", roles=["user"]
        )

        with pytest.raises(TokenReuseException):
            jwt_service.verify_refresh_token(refresh)
        # The legitimate successor dies with its family
        with pytest.raises(TokenRevokedException):
            jwt_service.verify_refresh_token(new_refresh)

    def test_revoked_family(self, jwt_service):
        refresh = jwt_service.create_refresh_token(
            user_id="user-1", session_id="session-1", token_family="family_x"
        )

        jwt_service.revoke_token_family("family_x")

        with pytest.raises(TokenRevokedException):
            jwt_service.verify_refresh_token(refresh)


class TestKeys:
    def test_production_requires_private_key(self, redis_client, tmp_path):
        with pytest.raises(InvalidTokenException):
            JWTService(
                redis_client=redis_client,
                private_key_path=str(tmp_path / "missing.pem"),
                environment="production",
            )

    def test_public_key_derived_from_private(self, redis_client, jwt_key_paths):
        private_key_path, _ = jwt_key_paths
        service = JWTService(redis_client=redis_client, private_key_path=private_key_path)

        token = issue_access(service)

        assert service.verify_access_token(token)["sub"] == "user-1"

    def test_tokens_from_other_keys_are_rejected(self, jwt_service, redis_client):
        stranger = JWTService(redis_client=redis_client)

        with pytest.raises(InvalidTokenException):
            jwt_service.verify_access_token(issue_access(stranger))
