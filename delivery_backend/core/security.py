"""
Password hashing and bearer tokens.

Tokens are opaque random strings kept in process memory with their
owner and expiry; restarting the server signs everyone out.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple
from uuid import UUID

from delivery_backend.config import get_settings


logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"

# Format: {token: {"user_id": UUID, "expires_at": datetime}}
active_tokens: Dict[str, dict] = {}


def hash_password(password: str) -> str:
    """Hash a password as ``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``."""
    iterations = get_settings().password_hash_iterations
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash"""
    try:
        algorithm, iterations, salt, expected = hashed.split("$")
    except ValueError:
        return False
    if algorithm != HASH_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def create_access_token(user_id: UUID) -> Tuple[str, datetime]:
    """Create a new access token and return it with its expiry."""
    token = secrets.token_urlsafe(32)
    expires_at = datetime.utcnow() + timedelta(days=get_settings().token_expire_days)
    active_tokens[token] = {
        "user_id": user_id,
        "expires_at": expires_at,
    }
    return token, expires_at


def resolve_token(token: str) -> Optional[UUID]:
    """Return the user id behind a live token, dropping it if expired."""
    token_data = active_tokens.get(token)
    if token_data is None:
        return None
    if datetime.utcnow() > token_data["expires_at"]:
        del active_tokens[token]
        return None
    return token_data["user_id"]


def revoke_token(token: str) -> None:
    active_tokens.pop(token, None)


def revoke_user_tokens(user_id: UUID) -> int:
    """Sign a user out everywhere. Returns the number of tokens dropped."""
    stale = [token for token, data in active_tokens.items() if data["user_id"] == user_id]
    for token in stale:
        del active_tokens[token]
    if stale:
        logger.info("Revoked %d token(s) for user %s", len(stale), user_id)
    return len(stale)
