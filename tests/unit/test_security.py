"""
Tests for password hashing, OAuth state tokens and the session cookie.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import jwt
import pytest
from fastapi import Response
from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.core.security import (
    hash_password, verify_password, create_state_token, verify_state_token,
    set_session_cookie
)
from app.models.user import SignupRequest


class TestPasswordHashing:

    def test_hash_is_salted_bcrypt(self):
        first = hash_password("correct horse", rounds=4)
        second = hash_password("correct horse", rounds=4)

        assert first != second
        assert first.startswith("$2b$04$")

    def test_verify_matches_original_password(self):
        stored = hash_password("correct horse", rounds=4)

        assert verify_password("correct horse", stored) is True
        assert verify_password("wrong horse", stored) is False

    def test_verify_rejects_malformed_hash(self):
        assert verify_password("anything", "not-a-hash") is False
        assert verify_password("anything", None) is False

    def test_signup_rejects_password_longer_than_bcrypt_reads(self):
        with pytest.raises(PydanticValidationError):
            SignupRequest(name="Fan", email="fan@test.com", password="ñ" * 40)


class TestStateTokens:

    def test_round_trip(self):
        token = create_state_token("user-1", "spotify")

        assert verify_state_token(token) == {"user_id": "user-1", "provider": "spotify"}

    def test_tampered_token_rejected(self):
        token = create_state_token("user-1", "spotify")

        assert verify_state_token(token[:-2] + "xx") is None

    def test_foreign_secret_rejected(self):
        token = jwt.encode({"user_id": "user-1", "provider": "spotify"}, "other-secret", algorithm="HS256")

        assert verify_state_token(token) is None

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=30)
        token = jwt.encode(
            {"user_id": "user-1", "provider": "spotify", "iat": past, "exp": past + timedelta(minutes=10)},
            settings.session_secret,
            algorithm="HS256"
        )

        assert verify_state_token(token) is None


class TestSessionCookie:

    def test_secure_flag_in_production(self):
        response = Response()
        with patch.object(settings, "app_env", "production"):
            set_session_cookie(response, "token-1")

        cookie = response.headers["set-cookie"]
        assert "session-token=token-1" in cookie
        assert "Secure" in cookie
        assert "HttpOnly" in cookie

    def test_plain_cookie_outside_production(self):
        response = Response()
        with patch.object(settings, "app_env", "development"):
            set_session_cookie(response, "token-1")

        assert "Secure" not in response.headers["set-cookie"]
