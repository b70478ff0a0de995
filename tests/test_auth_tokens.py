"""Unit tests for password hashing and JWT helpers."""

import jwt
import pytest

from taskdesk.auth.jwt import TokenError, create_access_token, verify_token
from taskdesk.auth.password import hash_password, verify_password
from taskdesk.config import Settings

SETTINGS = Settings(jwt_secret="unit-test-secret", bcrypt_rounds=4)


def test_hash_is_salted():
    a = hash_password("hunter22", rounds=4)
    b = hash_password("hunter22", rounds=4)
    assert a != b
    assert a.startswith("$2")


def test_verify_password():
    h = hash_password("hunter22", rounds=4)
    assert verify_password("hunter22", h)
    assert not verify_password("hunter23", h)


def test_verify_password_malformed_hash():
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_token_carries_user_and_role():
    token = create_access_token(SETTINGS, "user-123", "admin")
    payload = verify_token(SETTINGS, token)
    assert payload["sub"] == "user-123"
    assert payload["role"] == "admin"
    assert payload["type"] == "access"


def test_token_expires_after_24_hours():
    token = create_access_token(SETTINGS, "user-123", "user")
    payload = jwt.decode(token, options={"verify_signature": False})
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_expired_token_rejected():
    token = create_access_token(SETTINGS, "user-123", "user", expires_hours=-1)
    with pytest.raises(TokenError, match="expired"):
        verify_token(SETTINGS, token)


def test_wrong_secret_rejected():
    token = create_access_token(Settings(jwt_secret="other"), "user-123", "user")
    with pytest.raises(TokenError):
        verify_token(SETTINGS, token)


def test_non_access_token_rejected():
    token = jwt.encode(
        {"sub": "user-123", "type": "refresh", "exp": 9999999999},
        SETTINGS.jwt_secret,
        algorithm=SETTINGS.jwt_algorithm,
    )
    with pytest.raises(TokenError, match="Not an access token"):
        verify_token(SETTINGS, token)


def test_production_requires_real_secret():
    with pytest.raises(ValueError):
        Settings(environment="production")


def test_settings_are_frozen():
    with pytest.raises(Exception):
        SETTINGS.jwt_secret = "changed"
