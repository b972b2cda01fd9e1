"""
Authentication dependencies for FastAPI
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Dict
import uuid
import structlog

from restopos.core.auth import verify_token
from restopos.core.database import SchemaCapabilities
from restopos.core.permissions import Capabilities

logger = structlog.get_logger(__name__)
security = HTTPBearer()


def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Dict:
    """Validate the bearer token once per request"""
    payload = verify_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def get_current_user_id(claims: Dict = Depends(get_token_claims)) -> uuid.UUID:
    """Get current user ID from JWT token"""
    user_id = uuid.UUID(claims["sub"])
    logger.debug(f"User authenticated: {user_id}")
    return user_id


def get_restaurant_id(claims: Dict = Depends(get_token_claims)) -> uuid.UUID:
    """Get restaurant (tenant) ID from JWT token"""
    return uuid.UUID(claims["restaurant_id"])


def get_user_role(claims: Dict = Depends(get_token_claims)) -> str:
    """Get user role from JWT token"""
    return claims.get("role") or ""


def get_capabilities(role: str = Depends(get_user_role)) -> Capabilities:
    """Resolve the caller's role into an explicit capability set"""
    return Capabilities.for_role(role)


def get_schema_capabilities(request: Request) -> SchemaCapabilities:
    """Schema features detected at startup"""
    return getattr(request.app.state, "schema_capabilities", SchemaCapabilities())
