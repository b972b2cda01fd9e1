"""
Unit test for JWT authentication
"""

import pytest
from datetime import timedelta
import uuid
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from restopos.core.auth import create_access_token, verify_token, decode_access_token
from restopos.core.config import get_settings
from restopos.core.dependencies import (
    get_capabilities,
    get_current_user_id,
    get_restaurant_id,
    get_token_claims,
    get_user_role,
)
from restopos.core.permissions import Permission

settings = get_settings()


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_create_access_token():
    """Test JWT token creation"""
    user_id = uuid.uuid4()
    restaurant_id = uuid.uuid4()

    token = create_access_token(
        user_id=user_id,
        restaurant_id=restaurant_id,
        role="cashier",
        expires_delta=timedelta(hours=24)
    )

    payload = verify_token(token)
    assert payload is not None
    assert payload["sub"] == str(user_id)
    assert payload["restaurant_id"] == str(restaurant_id)
    assert payload["role"] == "cashier"
    assert "exp" in payload


def test_verify_invalid_token():
    """Test token verification with invalid token"""
    assert verify_token("invalid.token.string.here") is None


def test_expired_token():
    """Test that expired tokens are rejected"""
    token = create_access_token(
        user_id=uuid.uuid4(),
        restaurant_id=uuid.uuid4(),
        role="waiter",
        expires_delta=timedelta(hours=-1)
    )

    assert decode_access_token(token) is None


def test_token_without_restaurant_rejected():
    token = jwt.encode({"sub": str(uuid.uuid4()), "role": "admin"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    assert decode_access_token(token) is not None
    assert verify_token(token) is None


def test_dependencies_resolve_claims():
    user_id = uuid.uuid4()
    restaurant_id = uuid.uuid4()
    claims = get_token_claims(bearer(create_access_token(user_id, restaurant_id, "kitchen")))

    assert get_current_user_id(claims) == user_id
    assert get_restaurant_id(claims) == restaurant_id
    assert get_user_role(claims) == "kitchen"

    capabilities = get_capabilities(get_user_role(claims))
    assert capabilities.can(Permission.KITCHEN_UPDATE)
    assert not capabilities.can(Permission.ORDER_CREATE)


def test_bad_token_is_unauthorized():
    with pytest.raises(HTTPException) as exc_info:
        get_token_claims(bearer("garbage"))
    assert exc_info.value.status_code == 401
