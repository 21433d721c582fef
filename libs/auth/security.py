"""Password hashing and access-token helpers."""

from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_in


def hash_password(password: str) -> str:
    settings = get_settings()
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(
    *,
    user_id: str,
    role: str,
    email: Optional[str] = None,
    vendor_profile_id: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Sign a bearer token carrying the caller's identity and role."""
    settings = get_settings()
    claims: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "email": email,
        "vendor_profile_id": vendor_profile_id,
        "exp": utc_in(expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a token. Raises ``JWTError`` when invalid or expired."""
    settings = get_settings()
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


__all__ = [
    "JWTError",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
]
