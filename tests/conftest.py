"""
Test configuration for pytest
"""

import pytest
import os
from decimal import Decimal
from types import SimpleNamespace
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session
from typing import Generator
import uuid

# Test environment variables
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["ENVIRONMENT"] = "test"

import restopos.models  # noqa: E402,F401
from restopos.core.config import get_settings  # noqa: E402
from restopos.core.events import EventBus  # noqa: E402
from restopos.core.permissions import Capabilities  # noqa: E402
from restopos.models import (  # noqa: E402
    Customer,
    Discount,
    DiscountType,
    LoyaltyTransaction,
    LoyaltyTransactionType,
    OrderType,
    PaymentMethod,
    Product,
    ProductAddon,
    ProductSize,
    Restaurant,
    Table,
)
from restopos.services.checkout import (  # noqa: E402
    AddonRequest,
    CartItemRequest,
    CheckoutCommand,
    CheckoutService,
)

# One shared in-memory database for the whole session
test_engine = create_engine(
    "sqlite:///:memory:",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def override_settings(monkeypatch):
    """Override settings for one test; undone afterwards"""
    current = get_settings()

    def override(**values):
        for name, value in values.items():
            monkeypatch.setattr(current, name, value)
        return current

    return override


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


def seed_catalog(session: Session, tax_rate: Decimal = Decimal("10.00")) -> SimpleNamespace:
    """
    A small restaurant:
    burger $10 (tracked, 20 on hand) with a Large size (+$2) and cheese/bacon add-ons,
    fries $4.50 (untracked), SAVE10 (10%), FLAT50 ($50 off), a customer with
    100 points and table T1
    """
    restaurant = Restaurant(name="Test Bistro", tax_rate=tax_rate)
    session.add(restaurant)
    session.flush()

    burger = Product(restaurant_id=restaurant.id, name="Burger", price=Decimal("10.00"),
                     track_quantity=True, quantity=20, stock_alert=5, has_variations=True)
    fries = Product(restaurant_id=restaurant.id, name="Fries", price=Decimal("4.50"))
    cheese = Product(restaurant_id=restaurant.id, name="Cheese", price=Decimal("1.50"))
    bacon = Product(restaurant_id=restaurant.id, name="Bacon", price=Decimal("3.00"))
    session.add_all([burger, fries, cheese, bacon])
    session.flush()

    large = ProductSize(product_id=burger.id, name="Large", price_adjustment=Decimal("2.00"), sort_order=1)
    cheese_addon = ProductAddon(product_id=burger.id, addon_product_id=cheese.id, sort_order=1)
    bacon_addon = ProductAddon(product_id=burger.id, addon_product_id=bacon.id,
                               price_override=Decimal("2.00"), sort_order=2)

    save10 = Discount(restaurant_id=restaurant.id, name="Save 10%", code="SAVE10",
                      type=DiscountType.PERCENTAGE, value=Decimal("10"))
    flat50 = Discount(restaurant_id=restaurant.id, name="Fifty off", code="FLAT50",
                      type=DiscountType.FIXED, value=Decimal("50"))

    customer = Customer(restaurant_id=restaurant.id, name="Ana", loyalty_points=100)
    table = Table(restaurant_id=restaurant.id, table_number="T1")
    session.add_all([large, cheese_addon, bacon_addon, save10, flat50, customer, table])
    session.flush()

    # Opening balance goes through the ledger so it reconciles
    session.add(LoyaltyTransaction(
        customer_id=customer.id,
        type=LoyaltyTransactionType.ADJUSTMENT,
        points=100,
        description="Opening balance",
    ))
    session.commit()

    return SimpleNamespace(
        restaurant=restaurant,
        burger=burger,
        fries=fries,
        cheese=cheese,
        bacon=bacon,
        large=large,
        cheese_addon=cheese_addon,
        bacon_addon=bacon_addon,
        save10=save10,
        flat50=flat50,
        customer=customer,
        table=table,
    )


@pytest.fixture
def catalog(db: Session) -> SimpleNamespace:
    return seed_catalog(db)


def line(product, quantity=1, **kwargs) -> CartItemRequest:
    addons = tuple(
        AddonRequest(id=addon.id, quantity=qty) for addon, qty in kwargs.pop("addons", ())
    )
    return CartItemRequest(product_id=product.id, quantity=quantity, addons=addons, **kwargs)


def command(catalog, *items, **overrides) -> CheckoutCommand:
    values = dict(
        restaurant_id=catalog.restaurant.id,
        items=list(items),
        payment_method=PaymentMethod.CASH,
        order_type=OrderType.TAKEAWAY,
        user_id=uuid.uuid4(),
    )
    values.update(overrides)
    return CheckoutCommand(**values)


@pytest.fixture
def service(db: Session, bus: EventBus) -> CheckoutService:
    return CheckoutService(db, Capabilities.all(), bus=bus)
