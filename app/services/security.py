"""
Security Service

JWT access token handling.

Tokens are issued by the marketplace's authentication service; this API
only needs to verify them and read the user ID from the "sub" claim. Both
sides share SECRET_KEY and the HS256 algorithm.

Usage:
    from app.services.security import create_access_token, verify_token_type

    token = create_access_token({"sub": str(user.id)})
    payload = verify_token_type(token, "access")
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 15


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=ALGORITHM,
    )


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None


def verify_token_type(token: str, expected_type: str) -> dict | None:
    """
    Decode a token and verify its type.

    Returns:
        Decoded payload if valid and correct type, None otherwise
    """
    payload = decode_token(token)

    if payload is None:
        return None

    if payload.get("type") != expected_type:
        logger.warning(f"Token type mismatch: expected {expected_type}")
        return None

    return payload
