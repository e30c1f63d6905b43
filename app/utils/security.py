# app/utils/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
import logging
from ..config import settings

logger = logging.getLogger(__name__)

# Initialize with argon2 (no 72-byte limit)
pwd_context = CryptContext(
    schemes=['argon2'],
    deprecated='auto'
)

# ============================================================
# JWT Functions
# ============================================================

def create_access_token(
    subject: Any,
    roles: Optional[Iterable[str]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a new JWT access token carrying the user's roles.

    Args:
        subject: User ID or identifier
        roles: Role names granted to the user
        expires_delta: Custom expiration time

    Returns:
        JWT token string with expiration
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode = {
        'exp': expire,
        'sub': str(subject),
        'type': 'access',
        'iat': now,
        'roles': sorted(roles or []),
    }

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and validate JWT token.

    Raises:
        ExpiredSignatureError: If token has expired
        JWTError: If token is invalid
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise
    except JWTError as e:
        logger.warning(f"Invalid token: {e}")
        raise


# ============================================================
# Password Functions
# ============================================================

def get_password_hash(password: str) -> str:
    """
    Hash password with argon2

    Raises:
        ValueError: If password is empty
    """
    if not password:
        raise ValueError("Password cannot be empty")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash; malformed hashes count as a mismatch."""
    if not plain_password or not hashed_password:
        return False

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False
