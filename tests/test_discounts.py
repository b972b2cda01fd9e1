"""
Unit tests for discount validation and usage accounting
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from restopos.core.errors import BusinessRuleViolation, Reason, ValidationError
from restopos.models import Discount, DiscountType
from restopos.services import discounts

NOW = datetime(2026, 10, 19, 12, 0, 0)


def make_discount(**overrides) -> Discount:
    values = dict(
        restaurant_id=None,
        name="Test",
        code="TEST",
        type=DiscountType.PERCENTAGE,
        value=Decimal("10"),
        min_order_amount=Decimal("0"),
        used_count=0,
        is_active=True,
    )
    values.update(overrides)
    return Discount(**values)


def test_percentage_amount():
    check = discounts.validate(make_discount(), Decimal("20.00"), NOW)
    assert check.ok
    assert check.amount == Decimal("2.00")


def test_percentage_amount_capped():
    discount = make_discount(value=Decimal("50"), max_discount_amount=Decimal("5.00"))
    assert discounts.validate(discount, Decimal("40.00"), NOW).amount == Decimal("5.00")


def test_zero_cap_is_still_a_cap():
    discount = make_discount(value=Decimal("50"), max_discount_amount=Decimal("0.00"))
    assert discounts.calculate_amount(discount, Decimal("40.00")) == Decimal("0.00")


def test_fixed_amount_never_exceeds_subtotal():
    discount = make_discount(type=DiscountType.FIXED, value=Decimal("50"))
    assert discounts.validate(discount, Decimal("30.00"), NOW).amount == Decimal("30.00")
    assert discounts.validate(discount, Decimal("80.00"), NOW).amount == Decimal("50.00")


@pytest.mark.parametrize("overrides,reason", [
    ({"is_active": False}, Reason.INACTIVE),
    ({"min_order_amount": Decimal("25")}, Reason.BELOW_MINIMUM),
    ({"usage_limit": 3, "used_count": 3}, Reason.LIMIT_REACHED),
    ({"starts_at": date(2026, 10, 20)}, Reason.NOT_STARTED),
    ({"expires_at": date(2026, 10, 18)}, Reason.EXPIRED),
])
def test_rejection_reasons(overrides, reason):
    check = discounts.validate(make_discount(**overrides), Decimal("20.00"), NOW)
    assert not check.ok
    assert check.reason == reason


def test_first_failing_rule_wins():
    discount = make_discount(is_active=False, min_order_amount=Decimal("100"), expires_at=date(2020, 1, 1))
    assert discounts.validate(discount, Decimal("20.00"), NOW).reason == Reason.INACTIVE


def test_below_minimum_message():
    check = discounts.validate(make_discount(min_order_amount=Decimal("25")), Decimal("20.00"), NOW)
    assert check.message == "Minimum order amount is $25.00."


def test_window_is_inclusive_of_whole_days():
    discount = make_discount(starts_at=date(2026, 10, 19), expires_at=date(2026, 10, 19))
    assert discounts.validate(discount, Decimal("20.00"), datetime(2026, 10, 19, 0, 0, 0)).ok
    assert discounts.validate(discount, Decimal("20.00"), datetime(2026, 10, 19, 23, 59, 59)).ok
    assert not discounts.validate(discount, Decimal("20.00"), datetime(2026, 10, 20, 0, 0, 0)).ok


def test_raise_for_reason():
    check = discounts.validate(make_discount(is_active=False), Decimal("20.00"), NOW)
    with pytest.raises(BusinessRuleViolation) as exc_info:
        check.raise_for_reason()
    assert exc_info.value.reason == Reason.INACTIVE


def test_find_by_code_normalizes(db, catalog):
    found = discounts.find_by_code(db, catalog.restaurant.id, "  save10 ")
    assert found is not None
    assert found.id == catalog.save10.id


def test_find_by_code_is_tenant_scoped(db, catalog):
    import uuid
    assert discounts.find_by_code(db, uuid.uuid4(), "SAVE10") is None


def test_check_code(db, catalog):
    discount, amount = discounts.check_code(db, catalog.restaurant.id, "SAVE10", Decimal("20.00"))
    assert discount.id == catalog.save10.id
    assert amount == Decimal("2.00")


def test_check_code_unknown(db, catalog):
    with pytest.raises(BusinessRuleViolation) as exc_info:
        discounts.check_code(db, catalog.restaurant.id, "NOPE", Decimal("20.00"))
    assert exc_info.value.reason == Reason.INVALID_CODE


def test_check_code_negative_subtotal(db, catalog):
    with pytest.raises(ValidationError):
        discounts.check_code(db, catalog.restaurant.id, "SAVE10", Decimal("-1.00"))


def test_check_code_does_not_consume(db, catalog):
    discounts.check_code(db, catalog.restaurant.id, "SAVE10", Decimal("20.00"))
    db.refresh(catalog.save10)
    assert catalog.save10.used_count == 0


def test_claim_use_stops_at_limit(db, catalog):
    discount = catalog.save10
    discount.usage_limit = 1
    db.add(discount)
    db.commit()

    discounts.claim_use(db, discount)
    assert discount.used_count == 1

    # The guarded UPDATE refuses even though the caller holds the object
    with pytest.raises(BusinessRuleViolation) as exc_info:
        discounts.claim_use(db, discount)
    assert exc_info.value.reason == Reason.LIMIT_REACHED

    db.refresh(discount)
    assert discount.used_count == 1


def test_claim_use_unlimited(db, catalog):
    for _ in range(3):
        discounts.claim_use(db, catalog.save10)
    assert catalog.save10.used_count == 3
