"""
Discount validation and usage accounting
"""

from sqlmodel import Session, select
from sqlalchemy import or_, update
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from typing import Optional
import structlog
import uuid

from restopos.core.errors import BusinessRuleViolation, Reason, ValidationError
from restopos.models import Discount, DiscountType
from restopos.services.pricing import ZERO, money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DiscountCheck:
    """Outcome of validating a discount against a subtotal"""
    ok: bool
    amount: Decimal = ZERO
    reason: Optional[str] = None
    message: Optional[str] = None

    def raise_for_reason(self) -> None:
        if not self.ok:
            raise BusinessRuleViolation(self.reason, self.message)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def calculate_amount(discount: Discount, subtotal: Decimal) -> Decimal:
    """Discount amount for a subtotal; a fixed discount never exceeds the subtotal"""
    if discount.type == DiscountType.PERCENTAGE:
        amount = subtotal * discount.value / Decimal("100")
        if discount.max_discount_amount is not None:
            amount = min(amount, discount.max_discount_amount)
        return money(amount)

    return money(min(discount.value, subtotal))


def validate(discount: Discount, subtotal: Decimal, now: Optional[datetime] = None) -> DiscountCheck:
    """
    Check eligibility, first failing rule wins:
    inactive, below minimum, limit reached, not started, expired
    """
    now = now or datetime.utcnow()

    if not discount.is_active:
        return DiscountCheck(False, reason=Reason.INACTIVE, message="This discount is inactive.")

    if subtotal < (discount.min_order_amount or ZERO):
        return DiscountCheck(
            False,
            reason=Reason.BELOW_MINIMUM,
            message=f"Minimum order amount is ${money(discount.min_order_amount)}.",
        )

    if discount.usage_limit is not None and discount.used_count >= discount.usage_limit:
        return DiscountCheck(False, reason=Reason.LIMIT_REACHED, message="Usage limit reached.")

    if discount.starts_at and now < datetime.combine(discount.starts_at, time.min):
        return DiscountCheck(False, reason=Reason.NOT_STARTED, message="This discount is not active yet.")

    if discount.expires_at and now > datetime.combine(discount.expires_at, time.max):
        return DiscountCheck(False, reason=Reason.EXPIRED, message="This discount has expired.")

    return DiscountCheck(True, amount=calculate_amount(discount, subtotal))


def find_by_code(
    session: Session,
    restaurant_id: uuid.UUID,
    code: str,
    lock: bool = False,
) -> Optional[Discount]:
    """Look up a restaurant's discount by code; lock=True takes a row lock"""
    query = select(Discount).where(
        Discount.restaurant_id == restaurant_id,
        Discount.code == normalize_code(code),
    )
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    return session.exec(query).first()


def claim_use(session: Session, discount: Discount) -> None:
    """
    Increment used_count inside the caller's transaction

    The limit is re-checked by the UPDATE itself, so two checkouts racing
    for the last use cannot both succeed even without a row lock.
    """
    result = session.execute(
        update(Discount)
        .where(Discount.id == discount.id)
        .where(or_(Discount.usage_limit.is_(None), Discount.used_count < Discount.usage_limit))
        .values(used_count=Discount.used_count + 1, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info(f"Discount {discount.code} usage limit reached at commit")
        raise BusinessRuleViolation(Reason.LIMIT_REACHED, "Usage limit reached.")

    session.refresh(discount)
    logger.debug(f"Discount {discount.code} used {discount.used_count} times")


def check_code(
    session: Session,
    restaurant_id: uuid.UUID,
    code: str,
    subtotal: Decimal,
    now: Optional[datetime] = None,
) -> tuple[Discount, Decimal]:
    """Pre-checkout convenience check; checkout validates again before commit"""
    if subtotal < 0:
        raise ValidationError("Subtotal cannot be negative")

    discount = find_by_code(session, restaurant_id, code)
    if discount is None:
        raise BusinessRuleViolation(Reason.INVALID_CODE, "Invalid discount code.")

    check = validate(discount, subtotal, now)
    check.raise_for_reason()
    return discount, check.amount
