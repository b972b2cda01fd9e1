"""
Loyalty ledger

Customer.loyalty_points always equals the sum of the customer's
LoyaltyTransaction rows; both are written together here.
"""

from sqlmodel import Session, select
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from typing import Optional
import structlog
import uuid

from restopos.core.config import get_settings
from restopos.core.errors import (
    BusinessRuleViolation,
    CheckoutError,
    NotFound,
    PermissionDenied,
    Reason,
    ValidationError,
    from_db_error,
)
from restopos.models import Customer, LoyaltyTransaction, LoyaltyTransactionType
from restopos.services.pricing import ZERO, money

logger = structlog.get_logger(__name__)


def points_for_total(total: Decimal) -> int:
    """Points earned for an order total, floor(total * rate)"""
    rate = get_settings().LOYALTY_POINTS_PER_UNIT
    points = int((Decimal(total) * rate).to_integral_value(rounding=ROUND_FLOOR))
    return max(points, 0)


def redemption_value(points: int) -> Decimal:
    """Monetary value of redeemed points"""
    if points <= 0:
        return ZERO
    return money(Decimal(points) * get_settings().LOYALTY_POINT_VALUE)


def points_for_value(value: Decimal) -> int:
    """Fewest points whose redemption value covers value"""
    if value <= 0:
        return 0
    points = Decimal(value) / get_settings().LOYALTY_POINT_VALUE
    return int(points.to_integral_value(rounding=ROUND_CEILING))


def lock_customer(session: Session, restaurant_id: uuid.UUID, customer_id: uuid.UUID) -> Customer:
    customer = session.exec(
        select(Customer)
        .where(Customer.id == customer_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).first()

    if not customer:
        raise NotFound("Customer not found")
    if customer.restaurant_id != restaurant_id:
        raise PermissionDenied("Access denied")
    return customer


def _record(
    session: Session,
    customer: Customer,
    type: LoyaltyTransactionType,
    points: int,
    order_id: Optional[uuid.UUID],
    description: Optional[str],
) -> LoyaltyTransaction:
    """
    Move the balance by `points` and append the matching ledger row

    The UPDATE refuses to take the balance below zero, so the balance read
    under lock and the balance written can never disagree.
    """
    query = (
        update(Customer)
        .where(Customer.id == customer.id)
        .values(loyalty_points=Customer.loyalty_points + points, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if points < 0:
        query = query.where(Customer.loyalty_points >= -points)

    result = session.execute(query)
    if result.rowcount == 0:
        session.refresh(customer)
        raise BusinessRuleViolation(
            Reason.INSUFFICIENT_POINTS,
            f"Customer only has {customer.loyalty_points} points."
        )

    transaction = LoyaltyTransaction(
        customer_id=customer.id,
        order_id=order_id,
        type=type,
        points=points,
        description=description,
    )
    session.add(transaction)
    session.flush()
    session.refresh(customer)

    logger.info(
        "Loyalty points recorded",
        customer_id=str(customer.id),
        type=type.value,
        points=points,
        balance=customer.loyalty_points,
    )
    return transaction


def earn(
    session: Session,
    customer: Optional[Customer],
    order_total: Decimal,
    order_id: Optional[uuid.UUID] = None,
) -> int:
    """Credit points for an order; returns the points earned"""
    if customer is None:
        return 0

    points = points_for_total(order_total)
    if points == 0:
        return 0

    _record(session, customer, LoyaltyTransactionType.EARNED, points, order_id, f"Earned on order total {money(order_total)}")
    return points


def redeem(
    session: Session,
    customer: Optional[Customer],
    points: int,
    order_id: Optional[uuid.UUID] = None,
) -> int:
    """Debit points for an order; returns the points redeemed"""
    if customer is None or points == 0:
        return 0
    if points < 0:
        raise ValidationError("Redeemed points cannot be negative")

    _record(session, customer, LoyaltyTransactionType.REDEEMED, -points, order_id, "Redeemed at checkout")
    return points


def adjust(
    session: Session,
    customer: Optional[Customer],
    points: int,
    description: Optional[str] = None,
) -> Optional[LoyaltyTransaction]:
    """Manual signed adjustment; never takes the balance below zero"""
    if customer is None:
        return None
    if points == 0:
        raise ValidationError("Points adjustment cannot be zero")

    return _record(session, customer, LoyaltyTransactionType.ADJUSTMENT, points, None, description)


def adjust_manual(
    session: Session,
    restaurant_id: uuid.UUID,
    customer_id: uuid.UUID,
    points: int,
    description: Optional[str] = None,
) -> LoyaltyTransaction:
    """Manual adjustment committed on its own"""
    try:
        customer = lock_customer(session, restaurant_id, customer_id)
        transaction = adjust(session, customer, points, description)
        session.commit()
    except CheckoutError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Loyalty adjustment failed: {e}")
        raise from_db_error(e) from e

    session.refresh(transaction)
    return transaction


def history(
    session: Session,
    restaurant_id: uuid.UUID,
    customer_id: uuid.UUID,
    limit: int = 50,
) -> tuple[Customer, list[LoyaltyTransaction]]:
    """Balance and most recent ledger rows of a customer"""
    customer = session.get(Customer, customer_id)
    if not customer:
        raise NotFound("Customer not found")
    if customer.restaurant_id != restaurant_id:
        raise PermissionDenied("Access denied")

    transactions = session.exec(
        select(LoyaltyTransaction)
        .where(LoyaltyTransaction.customer_id == customer_id)
        .order_by(LoyaltyTransaction.created_at.desc())
        .limit(limit)
    ).all()
    return customer, list(transactions)
