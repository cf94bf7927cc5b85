"""Unit tests for JWT token creation, decoding, and expiry extraction."""

import uuid
from datetime import datetime, timedelta

import pytest
from jose import JWTError

from gymapp.auth.jwt import create_access_token, decode_token, issue_token, token_expiry


class TestCreateAccessToken:
    """Test access token creation."""

    def test_contains_type_access(self):
        token = create_access_token({"sub": "user-123"})
        payload = decode_token(token)
        assert payload["type"] == "access"

    def test_contains_sub_claim(self):
        token = create_access_token({"sub": "user-abc"})
        payload = decode_token(token)
        assert payload["sub"] == "user-abc"

    def test_contains_iat_and_exp(self):
        payload = decode_token(create_access_token({"sub": "user-123"}))
        assert "iat" in payload
        assert payload["exp"] > payload["iat"]

    def test_every_token_gets_its_own_jti(self):
        first = decode_token(create_access_token({"sub": "user-123"}))
        second = decode_token(create_access_token({"sub": "user-123"}))
        assert first["jti"]
        assert first["jti"] != second["jti"]

    def test_default_expiry_is_seven_days(self):
        payload = decode_token(create_access_token({"sub": "user-123"}))
        assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60

    def test_custom_expiry_delta(self):
        payload = decode_token(create_access_token({"sub": "user-123"}, expires_delta=timedelta(hours=1)))
        assert payload["exp"] - payload["iat"] == 3600


class TestDecodeToken:
    """Test token verification failures."""

    def test_expired_token_raises(self):
        token = create_access_token({"sub": "user-123"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_token(token)

    def test_tampered_token_raises(self):
        token = create_access_token({"sub": "user-123"})
        with pytest.raises(JWTError):
            decode_token(token[:-4] + "abcd")

    def test_garbage_raises(self):
        with pytest.raises(JWTError):
            decode_token("not.a.jwt")


class TestHelpers:
    def test_issue_token_uses_user_id_as_subject(self):
        user_id = uuid.uuid4()
        assert decode_token(issue_token(user_id))["sub"] == str(user_id)

    def test_token_expiry_is_naive_utc(self):
        payload = decode_token(create_access_token({"sub": "u"}, expires_delta=timedelta(hours=2)))
        expires_at = token_expiry(payload)
        assert expires_at.tzinfo is None
        assert expires_at == datetime.utcfromtimestamp(payload["exp"])
