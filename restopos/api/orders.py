"""
Order API endpoints
Reading orders and moving them through service and kitchen statuses
"""

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import List
import uuid

from restopos.core.database import get_session
from restopos.core.dependencies import get_capabilities, get_restaurant_id
from restopos.core.permissions import Capabilities, Permission
from restopos.services import order_state
from restopos.api.schemas import (
    KitchenStatusUpdate,
    KitchenTicketRead,
    OrderRead,
    OrderStatusUpdate,
)

router = APIRouter()


@router.get("/kitchen/queue", response_model=List[KitchenTicketRead])
def get_kitchen_queue(
    limit: int = Query(100, ge=1, le=500),
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
):
    """Orders waiting on the kitchen, oldest first"""
    capabilities.require(Permission.ORDER_VIEW)
    return order_state.kitchen_queue(session, restaurant_id, limit=limit)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
):
    capabilities.require(Permission.ORDER_VIEW)
    order = order_state.get_order(session, restaurant_id, order_id)
    return OrderRead.model_validate(order)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
):
    """Update the service/payment status"""
    capabilities.require(Permission.ORDER_UPDATE_STATUS)
    order = order_state.update_status(session, restaurant_id, order_id, data.status)
    return OrderRead.model_validate(order)


@router.patch("/{order_id}/kitchen-status", response_model=OrderRead)
def update_kitchen_status(
    order_id: uuid.UUID,
    data: KitchenStatusUpdate,
    session: Session = Depends(get_session),
    restaurant_id: uuid.UUID = Depends(get_restaurant_id),
    capabilities: Capabilities = Depends(get_capabilities),
):
    """Update the kitchen status; completed stamps completed_at"""
    capabilities.require(Permission.KITCHEN_UPDATE)
    order = order_state.update_kitchen_status(session, restaurant_id, order_id, data.kitchen_status)
    return OrderRead.model_validate(order)
