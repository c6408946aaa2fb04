# khscrm/token.py
from __future__ import annotations
from datetime import datetime, timedelta, timezone
import jwt
from .config import settings

ACCESS = "access"
REFRESH = "refresh"

def _encode(subject: str, session_id: str, token_type: str, minutes: int) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=minutes)
    payload = {
        "sub": subject,
        "sid": session_id,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_access_token(subject: str, session_id: str, minutes: int | None = None) -> str:
    if minutes is None:
        minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return _encode(subject, session_id, ACCESS, minutes)

def create_refresh_token(subject: str, session_id: str) -> str:
    return _encode(subject, session_id, REFRESH, settings.REFRESH_TOKEN_EXPIRE_MINUTES)

def decode_session_id(token: str, token_type: str = ACCESS, verify_exp: bool = True) -> str | None:
    """Return the session id a token carries, or None if it is invalid or of the wrong type."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except jwt.PyJWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload.get("sid")
