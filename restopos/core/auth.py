"""
JWT Authentication utilities
"""

from datetime import datetime, timedelta
from jose import JWTError, jwt
from typing import Dict, Optional
import uuid
from restopos.core.config import get_settings

settings = get_settings()


def create_access_token(
    user_id: uuid.UUID,
    restaurant_id: uuid.UUID,
    role: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token with user claims"""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(user_id),
        "restaurant_id": str(restaurant_id),
        "role": role,
        "exp": expire,
        "iat": datetime.utcnow(),
    }

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate JWT token"""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def verify_token(token: str) -> Optional[Dict]:
    """Return the claims of a valid token carrying every required claim"""
    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        uuid.UUID(payload.get("sub"))
        uuid.UUID(payload.get("restaurant_id"))
    except (TypeError, ValueError):
        return None
    return payload
