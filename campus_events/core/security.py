from __future__ import annotations

from passlib.context import CryptContext
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from campus_events.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Stateless session: the cookie carries a signed {"user_id": ...} payload.
serializer = URLSafeTimedSerializer(settings.SECRET_KEY, salt="campus_events_sid")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> tuple[bool, str | None]:
    """Check a password; the second item is a fresh hash when the stored one is outdated."""
    if not password_hash:
        return False, None
    return pwd_context.verify_and_update(password, password_hash)


def sign_session(user_id: int) -> str:
    return serializer.dumps({"user_id": int(user_id)})


def session_user_id(token: str | None, max_age_seconds: int | None = None) -> int | None:
    if not token:
        return None
    try:
        payload = serializer.loads(token, max_age=max_age_seconds or settings.SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return int(payload["user_id"])
    except (KeyError, TypeError, ValueError):
        return None
