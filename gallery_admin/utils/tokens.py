"""Session token and password hashing helpers."""
from __future__ import annotations

import hashlib
import hmac
import secrets

import bcrypt

from gallery_admin.config import get_settings

BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of a secret.
BCRYPT_MAX_BYTES = 72


def hash_token(raw: str) -> str:
    """Return an HMAC-SHA256 hash for the provided bearer token."""

    secret = get_settings().SECRET_KEY
    return hmac.new(secret.encode(), raw.encode(), hashlib.sha256).hexdigest()


def gen_token(prefix_len: int = 8) -> tuple[str, str, str]:
    """Generate a user-facing token, its prefix, and the stored hash."""

    prefix = "gal_" + secrets.token_hex(prefix_len)[:prefix_len]
    suffix = secrets.token_urlsafe(32)
    raw = f"{prefix}.{suffix}"
    return raw, prefix, hash_token(raw)


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash ``password`` with bcrypt at the given cost factor."""

    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash.
        return False


__all__ = ["hash_token", "gen_token", "hash_password", "verify_password"]
