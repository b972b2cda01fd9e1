"""
Stock ledger

Product.quantity is only ever changed here, and every change appends a
StockLog row in the same transaction.
"""

from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional
import structlog
import uuid

from restopos.core.config import get_settings
from restopos.core.database import SchemaCapabilities
from restopos.core.errors import (
    BusinessRuleViolation,
    CheckoutError,
    NotFound,
    PermissionDenied,
    Reason,
    ValidationError,
    from_db_error,
)
from restopos.core.events import EventBus, StockAdjusted, event_bus
from restopos.models import Product, StockLog, StockLogType, StockStatus

logger = structlog.get_logger(__name__)

MANUAL_TYPES = (StockLogType.ADJUSTMENT, StockLogType.RESTOCK)


def lock_product(session: Session, restaurant_id: uuid.UUID, product_id: uuid.UUID) -> Product:
    """Load a product under a row lock, scoped to the restaurant"""
    product = session.exec(
        select(Product)
        .where(Product.id == product_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).first()

    if not product:
        raise NotFound("Product not found")
    if product.restaurant_id != restaurant_id:
        raise PermissionDenied("Access denied")
    return product


def adjust(
    session: Session,
    restaurant_id: uuid.UUID,
    product_id: uuid.UUID,
    delta: int,
    type: StockLogType,
    note: Optional[str] = None,
    order_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> StockLog:
    """
    Apply a signed quantity change and append its ledger row

    Runs inside the caller's transaction; nothing is committed here.

    Args:
        session: Open session, owning the transaction
        restaurant_id: Tenant the product must belong to
        product_id: Product to adjust
        delta: Signed change (negative = deduction)
        type: Why the quantity changed
        note: Free text stored on the log row
        order_id: Order behind a sale deduction
        user_id: Staff member making the change

    Returns:
        The StockLog row, already flushed

    Raises:
        ValidationError: delta is zero or the product is not stock-tracked
        BusinessRuleViolation: insufficient_stock under the reject policy
    """
    if delta == 0:
        raise ValidationError("Quantity change cannot be zero")

    product = lock_product(session, restaurant_id, product_id)
    if not product.track_quantity:
        raise ValidationError(f"Product {product.name} does not track stock")

    before = product.quantity
    requested = before + delta

    if requested < 0:
        if type == StockLogType.SALE and get_settings().STOCK_OVERSELL_POLICY == "reject":
            raise BusinessRuleViolation(
                Reason.INSUFFICIENT_STOCK,
                f"Only {before} units of {product.name} left in stock."
            )
        logger.warning(
            "Stock oversold, clamping at zero",
            product_id=str(product.id),
            quantity_before=before,
            quantity_change=delta,
        )

    after = max(0, requested)
    product.quantity = after
    product.updated_at = datetime.utcnow()
    session.add(product)

    log = StockLog(
        restaurant_id=restaurant_id,
        product_id=product.id,
        user_id=user_id,
        order_id=order_id,
        quantity_before=before,
        quantity_change=delta,
        quantity_after=after,
        type=type,
        note=note,
    )
    session.add(log)
    session.flush()

    logger.info(
        "Stock adjusted",
        product_id=str(product.id),
        type=type.value,
        quantity_before=before,
        quantity_change=delta,
        quantity_after=after,
    )
    return log


def adjust_manual(
    session: Session,
    restaurant_id: uuid.UUID,
    product_id: uuid.UUID,
    delta: int,
    type: StockLogType,
    note: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
    bus: EventBus = event_bus,
) -> StockLog:
    """Manual restock or count correction, committed on its own"""
    if type not in MANUAL_TYPES:
        raise ValidationError("Manual stock changes must be of type adjustment or restock")

    try:
        log = adjust(session, restaurant_id, product_id, delta, type, note=note, user_id=user_id)
        session.commit()
    except CheckoutError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Manual stock adjustment failed: {e}")
        raise from_db_error(e) from e

    session.refresh(log)
    product = session.get(Product, product_id)
    bus.publish(StockAdjusted(
        product_id=product_id,
        restaurant_id=restaurant_id,
        quantity_change=log.quantity_change,
        quantity_after=log.quantity_after,
        stock_status=product.stock_status().value,
    ))
    return log


def stock_status(product: Product) -> StockStatus:
    return product.stock_status()


def stock_summary(
    session: Session,
    restaurant_id: uuid.UUID,
    capabilities: Optional[SchemaCapabilities] = None,
) -> Dict[str, int]:
    """Counts of tracked products per stock status"""
    summary = {"total_tracked": 0, "out": 0, "low": 0, "ok": 0}
    if capabilities is not None and not capabilities.stock_tracking:
        return summary

    products = session.exec(
        select(Product).where(
            Product.restaurant_id == restaurant_id,
            Product.track_quantity == True,  # noqa: E712
        )
    ).all()

    counts = Counter(product.stock_status().value for product in products)
    summary["total_tracked"] = len(products)
    summary.update({key: counts.get(key, 0) for key in ("out", "low", "ok")})
    return summary


def logs_for(
    session: Session,
    restaurant_id: uuid.UUID,
    product_id: uuid.UUID,
    limit: int = 30,
    offset: int = 0,
) -> List[StockLog]:
    """Most recent ledger rows for a product"""
    product = session.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    if product.restaurant_id != restaurant_id:
        raise PermissionDenied("Access denied")

    return session.exec(
        select(StockLog)
        .where(StockLog.product_id == product_id)
        .order_by(StockLog.created_at.desc())
        .offset(offset)
        .limit(limit)
    ).all()
