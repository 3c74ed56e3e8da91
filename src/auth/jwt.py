"""
JWT token management.

Tokens arrive either in the httpOnly ``access_token`` cookie (browser
sessions) or as an ``Authorization: Bearer`` header (integrations).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from src.config import settings

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "access"
COOKIE_NAME = "access_token"


def create_access_token(
    person_id: int,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        person_id: Person's database ID, stored as ``sub``
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expire_hours))

    payload = {
        "sub": str(person_id),
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": now,
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[int]:
    """
    Verify a JWT token.

    Returns:
        The person id from ``sub``, or None if the token is invalid/expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None


def get_token_from_request(request) -> Optional[str]:
    """Bearer header first, then the cookie."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get(COOKIE_NAME)
