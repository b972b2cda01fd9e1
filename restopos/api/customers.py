"""
Customer loyalty API endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
import uuid

from restopos.core.database import SchemaCapabilities, get_session
from restopos.core.dependencies import get_capabilities, get_restaurant_id, get_schema_capabilities
from restopos.core.errors import ValidationError
from restopos.core.permissions import Capabilities, Permission
from restopos.services import loyalty
from restopos.api.schemas import LoyaltyAdjustRequest, LoyaltyRead, LoyaltyTransactionRead

router = APIRouter()


@router.get("/{customer_id}/loyalty", response_model=LoyaltyRead)
def get_loyalty(
    customer_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
):
    """Balance and recent loyalty history"""
    capabilities.require(Permission.ORDER_VIEW)
    customer, transactions = loyalty.history(session, restaurant_id, customer_id, limit=limit)
    return LoyaltyRead(
        customer_id=customer.id,
        name=customer.name,
        loyalty_points=customer.loyalty_points,
        last_visit_at=customer.last_visit_at,
        transactions=[LoyaltyTransactionRead.model_validate(t) for t in transactions],
    )


@router.post(
    "/{customer_id}/loyalty/adjust",
    response_model=LoyaltyTransactionRead,
    status_code=status.HTTP_201_CREATED,
)
def adjust_loyalty(
    customer_id: uuid.UUID,
    data: LoyaltyAdjustRequest,
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
    schema: SchemaCapabilities = Depends(get_schema_capabilities),
):
    """Manual points correction; the balance never goes below zero"""
    capabilities.require(Permission.LOYALTY_ADJUST)
    if not schema.loyalty_ledger:
        raise ValidationError("Loyalty is not available")

    return loyalty.adjust_manual(session, restaurant_id, customer_id, data.points, data.description)
