"""
Checkout API endpoint
Turns a POS cart into a paid order in one transaction
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
import structlog
import uuid

from restopos.core.database import SchemaCapabilities, get_session
from restopos.core.dependencies import (
    get_capabilities,
    get_current_user_id,
    get_restaurant_id,
    get_schema_capabilities,
)
from restopos.core.errors import PermissionDenied
from restopos.core.permissions import Capabilities
from restopos.services.checkout import (
    AddonRequest,
    CartItemRequest,
    CheckoutCommand,
    CheckoutService,
)
from restopos.api.schemas import CheckoutRequest, CheckoutResponse

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
def checkout(
    data: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user_id: uuid.UUID = Depends(get_current_user_id),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
    schema: SchemaCapabilities = Depends(get_schema_capabilities),
):
    """Place and pay for an order"""
    if data.restaurant_id != restaurant_id:
        raise PermissionDenied("Access denied")

    command = CheckoutCommand(
        restaurant_id=restaurant_id,
        user_id=current_user_id,
        items=[
            CartItemRequest(
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
                size_id=item.size_id,
                addons=tuple(AddonRequest(id=addon.id, quantity=addon.quantity) for addon in item.addons),
                notes=item.notes,
            )
            for item in data.items
        ],
        payment_method=data.payment_method,
        order_type=data.order_type,
        customer_id=data.customer_id,
        table_id=data.table_id,
        discount_code=data.discount_code,
        loyalty_points_redeemed=data.loyalty_points_redeemed,
        subtotal=data.subtotal,
        tax=data.tax,
        total=data.total,
        notes=data.notes,
    )

    result = CheckoutService(session, capabilities, schema=schema).checkout(command)
    logger.info(f"Order placed: {result.order_number}")

    return CheckoutResponse(
        order_id=result.order_id,
        order_number=result.order_number,
        subtotal=result.subtotal,
        tax=result.tax,
        discount_amount=result.discount_amount,
        total=result.total,
        status=result.status,
        points_earned=result.points_earned,
        points_redeemed=result.points_redeemed,
    )
