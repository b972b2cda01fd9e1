"""
Pricing engine
Pure functions computing line totals, subtotal, discount, tax and total
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from restopos.core.errors import ValidationError

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, str]


def money(value: Number) -> Decimal:
    """Round to cents, half up"""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CartLine:
    """Unit price and quantity of one cart line"""
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class PriceBreakdown:
    """Totals of a priced cart"""
    subtotal: Decimal
    coupon_amount: Decimal
    loyalty_amount: Decimal
    discount_amount: Decimal
    taxable: Decimal
    tax: Decimal
    total: Decimal


def catalog_unit_price(base_price: Decimal, size_adjustment: Optional[Decimal] = None) -> Decimal:
    """Unit price from the catalog: base price plus the size adjustment"""
    if base_price < 0:
        raise ValidationError("Price cannot be negative")
    return money(base_price + (size_adjustment or ZERO))


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    """
    Total of one line

    Args:
        unit_price: Authoritative unit price (excluding add-ons)
        quantity: Units ordered

    Returns:
        unit_price * quantity, rounded to cents
    """
    if unit_price < 0:
        raise ValidationError("Price cannot be negative")
    if quantity < 0:
        raise ValidationError("Quantity cannot be negative")
    return money(unit_price * quantity)


def cart_subtotal(lines: Iterable[CartLine]) -> Decimal:
    """Sum of line totals"""
    return money(sum((line_total(line.unit_price, line.quantity) for line in lines), ZERO))


def price_cart(
    lines: Iterable[CartLine],
    tax_rate: Decimal,
    coupon_amount: Decimal = ZERO,
    loyalty_amount: Decimal = ZERO,
) -> PriceBreakdown:
    """
    Price a cart

    Discounts reduce the subtotal before tax is computed. The coupon is
    clamped to the subtotal and the loyalty redemption to what is left, so
    discount_amount never exceeds the subtotal.

    Args:
        lines: Cart lines with authoritative unit prices
        tax_rate: Flat restaurant tax rate as a percentage (10 = 10%)
        coupon_amount: Amount granted by a validated discount code
        loyalty_amount: Monetary value of redeemed loyalty points

    Returns:
        PriceBreakdown where total == subtotal + tax - discount_amount
    """
    if tax_rate < 0:
        raise ValidationError("Tax rate cannot be negative")
    if coupon_amount < 0 or loyalty_amount < 0:
        raise ValidationError("Discounts cannot be negative")

    subtotal = cart_subtotal(lines)
    coupon = min(money(coupon_amount), subtotal)
    loyalty = min(money(loyalty_amount), subtotal - coupon)
    discount_amount = coupon + loyalty

    taxable = subtotal - discount_amount
    tax = money(taxable * Decimal(tax_rate) / Decimal("100"))
    total = max(subtotal + tax - discount_amount, ZERO)

    return PriceBreakdown(
        subtotal=subtotal,
        coupon_amount=coupon,
        loyalty_amount=loyalty,
        discount_amount=discount_amount,
        taxable=taxable,
        tax=tax,
        total=total,
    )
