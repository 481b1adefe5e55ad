"""
Tests for password hashing and bearer tokens.
"""

from datetime import datetime, timedelta
from uuid import uuid4

from delivery_backend.core import security


def test_hash_round_trip():
    hashed = security.hash_password("Secret123")
    assert hashed.startswith("pbkdf2_sha256$")
    assert "Secret123" not in hashed
    assert security.verify_password("Secret123", hashed)
    assert not security.verify_password("Secret124", hashed)


def test_hashes_are_salted():
    assert security.hash_password("Secret123") != security.hash_password("Secret123")


def test_malformed_hash_never_verifies():
    assert not security.verify_password("Secret123", "not-a-hash")


def test_token_resolves_to_user():
    user_id = uuid4()
    token, expires_at = security.create_access_token(user_id)
    assert expires_at > datetime.utcnow()
    assert security.resolve_token(token) == user_id


def test_expired_token_is_dropped():
    token, _ = security.create_access_token(uuid4())
    security.active_tokens[token]["expires_at"] = datetime.utcnow() - timedelta(seconds=1)
    assert security.resolve_token(token) is None
    assert token not in security.active_tokens


def test_revoke_user_tokens():
    user_id = uuid4()
    first, _ = security.create_access_token(user_id)
    second, _ = security.create_access_token(user_id)
    other, _ = security.create_access_token(uuid4())
    
    assert security.revoke_user_tokens(user_id) == 2
    assert security.resolve_token(first) is None
    assert security.resolve_token(second) is None
    assert security.resolve_token(other) is not None
