"""
Password hashing and session-id generation.

Passwords go through passlib's bcrypt scheme; plaintext is never stored or
returned. Session ids are opaque random strings handed to the session store.
"""
from __future__ import annotations

import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored hash. Unknown hash formats fail closed."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def new_session_id() -> str:
    return secrets.token_urlsafe(32)
