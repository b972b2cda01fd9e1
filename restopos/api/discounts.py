"""
Discount API endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
import uuid

from restopos.core.database import get_session
from restopos.core.dependencies import get_capabilities, get_restaurant_id
from restopos.core.permissions import Capabilities, Permission
from restopos.services import discounts
from restopos.api.schemas import DiscountApplyRequest, DiscountApplyResponse

router = APIRouter()


@router.post("/apply", response_model=DiscountApplyResponse)
def apply_discount(
    data: DiscountApplyRequest,
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
):
    """
    Preview a discount code against a subtotal

    Nothing is reserved; checkout validates the code again before commit.
    """
    capabilities.require(Permission.ORDER_DISCOUNT)

    discount, amount = discounts.check_code(session, restaurant_id, data.code, data.subtotal)
    return DiscountApplyResponse(
        discount_id=discount.id,
        discount_amount=amount,
        code=discount.code,
        name=discount.name,
        type=discount.type,
        value=discount.value,
    )
