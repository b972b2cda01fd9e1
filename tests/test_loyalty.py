"""
Unit tests for the loyalty ledger
"""

import pytest
import uuid
from decimal import Decimal
from sqlmodel import select

from restopos.core.errors import BusinessRuleViolation, PermissionDenied, Reason, ValidationError
from restopos.models import LoyaltyTransaction, LoyaltyTransactionType
from restopos.services import loyalty


def ledger_sum(db, customer):
    return sum(t.points for t in db.exec(
        select(LoyaltyTransaction).where(LoyaltyTransaction.customer_id == customer.id)
    ).all())


def test_points_for_total():
    assert loyalty.points_for_total(Decimal("22.00")) == 22
    assert loyalty.points_for_total(Decimal("19.99")) == 19
    assert loyalty.points_for_total(Decimal("0.50")) == 0
    assert loyalty.points_for_total(Decimal("-5.00")) == 0


def test_points_rate_configurable(override_settings):
    override_settings(LOYALTY_POINTS_PER_UNIT=Decimal("2"))
    assert loyalty.points_for_total(Decimal("10.40")) == 20


def test_redemption_value():
    assert loyalty.redemption_value(100) == Decimal("1.00")
    assert loyalty.redemption_value(0) == Decimal("0.00")


def test_points_for_value_rounds_up(override_settings):
    assert loyalty.points_for_value(Decimal("0.50")) == 50
    assert loyalty.points_for_value(Decimal("0.00")) == 0

    override_settings(LOYALTY_POINT_VALUE=Decimal("0.03"))
    assert loyalty.points_for_value(Decimal("0.10")) == 4


def test_earn(db, catalog):
    customer = catalog.customer
    points = loyalty.earn(db, customer, Decimal("22.00"))
    db.commit()

    assert points == 22
    db.refresh(customer)
    assert customer.loyalty_points == 122
    assert ledger_sum(db, customer) == 122


def test_redeem(db, catalog):
    customer = catalog.customer
    loyalty.redeem(db, customer, 40)
    db.commit()

    db.refresh(customer)
    assert customer.loyalty_points == 60
    assert ledger_sum(db, customer) == 60

    redeemed = db.exec(
        select(LoyaltyTransaction).where(LoyaltyTransaction.type == LoyaltyTransactionType.REDEEMED)
    ).one()
    assert redeemed.points == -40


def test_redeem_more_than_balance(db, catalog):
    with pytest.raises(BusinessRuleViolation) as exc_info:
        loyalty.redeem(db, catalog.customer, 101)
    assert exc_info.value.reason == Reason.INSUFFICIENT_POINTS


def test_noops_without_customer(db):
    assert loyalty.earn(db, None, Decimal("50.00")) == 0
    assert loyalty.redeem(db, None, 10) == 0
    assert loyalty.adjust(db, None, 10) is None


def test_adjust_never_below_zero(db, catalog):
    with pytest.raises(BusinessRuleViolation):
        loyalty.adjust(db, catalog.customer, -101)

    transaction = loyalty.adjust(db, catalog.customer, -100, "Expired")
    assert transaction.type == LoyaltyTransactionType.ADJUSTMENT
    assert catalog.customer.loyalty_points == 0


def test_adjust_zero_rejected(db, catalog):
    with pytest.raises(ValidationError):
        loyalty.adjust(db, catalog.customer, 0)


def test_adjust_manual_is_tenant_scoped(db, catalog):
    with pytest.raises(PermissionDenied):
        loyalty.adjust_manual(db, uuid.uuid4(), catalog.customer.id, 10)

    transaction = loyalty.adjust_manual(db, catalog.restaurant.id, catalog.customer.id, 10, "Birthday")
    assert transaction.points == 10
    db.refresh(catalog.customer)
    assert catalog.customer.loyalty_points == 110


def test_history(db, catalog):
    loyalty.adjust_manual(db, catalog.restaurant.id, catalog.customer.id, 5)
    customer, transactions = loyalty.history(db, catalog.restaurant.id, catalog.customer.id)

    assert customer.loyalty_points == 105
    assert len(transactions) == 2
