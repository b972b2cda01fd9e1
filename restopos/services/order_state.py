"""
Order state machine

status and kitchen_status are independent tracks. Financial fields are
never touched here.
"""

from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from typing import Callable, List
import structlog
import uuid

from restopos.core.config import get_settings
from restopos.core.errors import (
    BusinessRuleViolation,
    CheckoutError,
    NotFound,
    PermissionDenied,
    Reason,
    from_db_error,
)
from restopos.core.events import EventBus, KitchenStatusChanged, OrderStatusChanged, event_bus
from restopos.models import KitchenStatus, Order, OrderStatus

logger = structlog.get_logger(__name__)

OPEN_KITCHEN_STATUSES = (KitchenStatus.PENDING, KitchenStatus.PREPARING, KitchenStatus.READY)


def get_order(session: Session, restaurant_id: uuid.UUID, order_id: uuid.UUID, lock: bool = False) -> Order:
    query = select(Order).where(Order.id == order_id)
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    order = session.exec(query).first()

    if not order:
        raise NotFound("Order not found")
    if order.restaurant_id != restaurant_id:
        raise PermissionDenied("Access denied")
    return order


def _commit(session: Session, action: str) -> None:
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{action} failed: {e}")
        raise from_db_error(e) from e


def update_status(
    session: Session,
    restaurant_id: uuid.UUID,
    order_id: uuid.UUID,
    new_status: OrderStatus,
    bus: EventBus = event_bus,
    clock: Callable[[], datetime] = datetime.utcnow,
) -> Order:
    """
    Change the service/payment status

    Any status may be assigned unless ORDER_STATUS_FORWARD_ONLY is set, in
    which case only forward moves and cancellation are accepted.
    """
    try:
        order = get_order(session, restaurant_id, order_id, lock=True)
        previous = order.status

        if get_settings().ORDER_STATUS_FORWARD_ONLY:
            allowed, message = order.can_transition_to(new_status)
            if not allowed:
                raise BusinessRuleViolation(Reason.INVALID_TRANSITION, message)

        order.status = new_status
        order.updated_at = clock()
        session.add(order)
    except CheckoutError:
        session.rollback()
        raise

    _commit(session, "Order status update")
    session.refresh(order)

    logger.info(
        "Order status updated",
        order_id=str(order.id),
        previous_status=previous.value,
        status=order.status.value,
    )
    bus.publish(OrderStatusChanged(
        order_id=order.id,
        restaurant_id=restaurant_id,
        previous_status=previous.value,
        status=order.status.value,
    ))
    return order


def update_kitchen_status(
    session: Session,
    restaurant_id: uuid.UUID,
    order_id: uuid.UUID,
    new_status: KitchenStatus,
    bus: EventBus = event_bus,
    clock: Callable[[], datetime] = datetime.utcnow,
) -> Order:
    """Move an order through preparation; completed stamps completed_at"""
    try:
        order = get_order(session, restaurant_id, order_id, lock=True)
    except CheckoutError:
        session.rollback()
        raise

    previous = order.kitchen_status
    now = clock()
    order.kitchen_status = new_status
    order.updated_at = now
    if new_status == KitchenStatus.COMPLETED:
        order.completed_at = now
    session.add(order)

    _commit(session, "Kitchen status update")
    session.refresh(order)

    logger.info(
        "Kitchen status updated",
        order_id=str(order.id),
        previous_status=previous.value,
        kitchen_status=order.kitchen_status.value,
    )
    bus.publish(KitchenStatusChanged(
        order_id=order.id,
        restaurant_id=restaurant_id,
        previous_status=previous.value,
        kitchen_status=order.kitchen_status.value,
        completed_at=order.completed_at,
    ))
    return order


def kitchen_queue(session: Session, restaurant_id: uuid.UUID, limit: int = 100) -> List[Order]:
    """Orders still in the kitchen, oldest first"""
    return session.exec(
        select(Order)
        .where(
            Order.restaurant_id == restaurant_id,
            Order.kitchen_status.in_(OPEN_KITCHEN_STATUSES),
            Order.status != OrderStatus.CANCELLED,
        )
        .order_by(Order.created_at.asc())
        .limit(limit)
    ).all()
