"""
Checkout orchestrator

Turns a cart into a committed Order with its items, payment, stock
deductions, discount usage, loyalty entries and table occupancy. Everything
is written in one transaction; a failed attempt leaves nothing behind.
"""

from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple
import secrets
import structlog
import uuid

from restopos.core.config import get_settings
from restopos.core.database import SchemaCapabilities
from restopos.core.errors import (
    BusinessRuleViolation,
    CheckoutError,
    ConflictError,
    NotFound,
    PermissionDenied,
    Reason,
    ValidationError,
    from_db_error,
)
from restopos.core.events import EventBus, OrderPlaced, event_bus
from restopos.core.permissions import Capabilities, Permission
from restopos.models import (
    AddonSnapshot,
    Customer,
    Discount,
    Order,
    OrderItem,
    OrderStatus,
    OrderType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Product,
    ProductAddon,
    ProductSize,
    Restaurant,
    StockLogType,
    Table,
    TableStatus,
)
from restopos.services import discounts, loyalty, stock
from restopos.services.pricing import (
    ZERO,
    CartLine,
    PriceBreakdown,
    cart_subtotal,
    catalog_unit_price,
    line_total,
    money,
    price_cart,
)

logger = structlog.get_logger(__name__)
settings = get_settings()


class CheckoutPhase(str, Enum):
    """Phases of one checkout attempt"""
    VALIDATING = "validating"
    PRICING = "pricing"
    RESERVING_STOCK = "reserving_stock"
    RESERVING_LOYALTY = "reserving_loyalty"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class AddonRequest:
    """Add-on chosen for a cart line, by ProductAddon id"""
    id: uuid.UUID
    quantity: int = 1


@dataclass(frozen=True)
class CartItemRequest:
    product_id: uuid.UUID
    quantity: int
    price: Optional[Decimal] = None
    size_id: Optional[uuid.UUID] = None
    addons: Tuple[AddonRequest, ...] = ()
    notes: Optional[str] = None


@dataclass(frozen=True)
class CheckoutCommand:
    """
    A cart submitted for checkout

    subtotal/tax/total are the figures the terminal showed the customer;
    they are compared with the computed ones but never trusted.
    """
    restaurant_id: uuid.UUID
    items: Sequence[CartItemRequest]
    payment_method: PaymentMethod
    order_type: OrderType = OrderType.DINE_IN
    user_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    table_id: Optional[uuid.UUID] = None
    discount_code: Optional[str] = None
    loyalty_points_redeemed: int = 0
    subtotal: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    total: Optional[Decimal] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CheckoutResult:
    order_id: uuid.UUID
    order_number: str
    subtotal: Decimal
    tax: Decimal
    discount_amount: Decimal
    total: Decimal
    status: OrderStatus
    points_earned: int = 0
    points_redeemed: int = 0


@dataclass
class _PricedLine:
    product: Product
    size: Optional[ProductSize]
    unit_price: Decimal
    quantity: int
    notes: Optional[str]
    addons: List[AddonSnapshot] = field(default_factory=list)


def generate_order_number() -> str:
    return f"{settings.ORDER_NUMBER_PREFIX}-{secrets.token_hex(6).upper()}"


def generate_transaction_id() -> str:
    return f"TXN-{secrets.token_hex(6).upper()}"


class CheckoutService:
    """Runs checkouts against one session"""

    def __init__(
        self,
        session: Session,
        capabilities: Capabilities,
        schema: SchemaCapabilities = SchemaCapabilities(),
        bus: EventBus = event_bus,
        number_factory: Optional[Callable[[], str]] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.session = session
        self.capabilities = capabilities
        self.schema = schema
        self.bus = bus
        self.number_factory = number_factory or generate_order_number
        self.clock = clock

    def checkout(self, command: CheckoutCommand) -> CheckoutResult:
        """
        Place an order

        Conflicts (concurrent writes, order number collisions) retry the
        whole attempt up to CHECKOUT_MAX_ATTEMPTS times. The OrderPlaced
        event is published only after the transaction commits.

        Raises:
            ValidationError: malformed cart or unknown ids
            BusinessRuleViolation: discount, loyalty or stock rule refused
            PermissionDenied: caller lacks a needed capability
            ConflictError: conflicts outlived the retries
            InfrastructureError: storage unavailable
        """
        max_attempts = max(1, settings.CHECKOUT_MAX_ATTEMPTS)

        for attempt in range(1, max_attempts + 1):
            try:
                result, event = self._attempt(command, attempt)
            except ConflictError as e:
                if attempt >= max_attempts:
                    logger.error(
                        "Checkout conflict, giving up",
                        restaurant_id=str(command.restaurant_id),
                        attempts=attempt,
                    )
                    raise
                logger.warning(
                    "Checkout conflict, retrying",
                    restaurant_id=str(command.restaurant_id),
                    attempt=attempt,
                    error=e.message,
                )
                continue

            self.bus.publish(event)
            return result

        raise ConflictError("Checkout could not be completed")

    def _phase(self, phase: CheckoutPhase, attempt: int) -> CheckoutPhase:
        logger.debug("Checkout phase", phase=phase.value, attempt=attempt)
        return phase

    def _attempt(self, command: CheckoutCommand, attempt: int) -> Tuple[CheckoutResult, OrderPlaced]:
        session = self.session
        phase = self._phase(CheckoutPhase.VALIDATING, attempt)

        try:
            restaurant = self._load_restaurant(command.restaurant_id)
            self._check_capabilities(command)
            lines = self._resolve_lines(command)
            customer = self._load_customer(command)
            table = self._load_table(command)

            phase = self._phase(CheckoutPhase.PRICING, attempt)
            cart = [CartLine(line.unit_price, line.quantity) for line in lines]
            subtotal = cart_subtotal(cart)
            discount, coupon_amount = self._resolve_discount(command, subtotal)
            loyalty_value = loyalty.redemption_value(command.loyalty_points_redeemed) if customer else ZERO
            breakdown = price_cart(cart, restaurant.tax_rate, coupon_amount, loyalty_value)
            self._compare_client_totals(command, breakdown)

            phase = self._phase(CheckoutPhase.RESERVING_STOCK, attempt)
            now = self.clock()
            # Header goes in first so ledger rows can reference it
            order = Order(
                restaurant_id=command.restaurant_id,
                user_id=command.user_id,
                table_id=table.id if table else None,
                customer_id=customer.id if customer else None,
                discount_id=discount.id if discount else None,
                order_number=self._allocate_order_number(command.restaurant_id),
                order_type=command.order_type,
                status=OrderStatus.PENDING,
                subtotal=breakdown.subtotal,
                tax=breakdown.tax,
                discount_amount=breakdown.discount_amount,
                loyalty_amount=breakdown.loyalty_amount,
                total=breakdown.total,
                notes=command.notes,
                created_at=now,
            )
            session.add(order)
            session.flush()

            if self.schema.stock_tracking:
                # Fixed lock order across concurrent checkouts
                for line in sorted(lines, key=lambda line: str(line.product.id)):
                    if line.product.track_quantity:
                        stock.adjust(
                            session,
                            command.restaurant_id,
                            line.product.id,
                            -line.quantity,
                            StockLogType.SALE,
                            note=f"Order {order.order_number}",
                            order_id=order.id,
                            user_id=command.user_id,
                        )

            if discount:
                discounts.claim_use(session, discount)

            phase = self._phase(CheckoutPhase.RESERVING_LOYALTY, attempt)
            if customer and self.schema.loyalty_ledger:
                # Only debit the points whose value was actually applied
                points_used = min(
                    command.loyalty_points_redeemed,
                    loyalty.points_for_value(breakdown.loyalty_amount),
                )
                order.points_redeemed = loyalty.redeem(session, customer, points_used, order.id)
                order.points_earned = loyalty.earn(session, customer, breakdown.total, order.id)
                customer.last_visit_at = now
                session.add(customer)

            phase = self._phase(CheckoutPhase.PERSISTING, attempt)
            for line in lines:
                item = OrderItem(
                    order_id=order.id,
                    product_id=line.product.id,
                    size_id=line.size.id if line.size else None,
                    quantity=line.quantity,
                    price=line.unit_price,
                    total=line_total(line.unit_price, line.quantity),
                    notes=line.notes,
                )
                item.freeze_addons(line.addons)
                session.add(item)

            payment = Payment(
                order_id=order.id,
                method=command.payment_method,
                amount=breakdown.total,
                status=PaymentStatus.COMPLETED,
                transaction_id=generate_transaction_id(),
                processed_at=now,
            )
            session.add(payment)

            if table and command.order_type == OrderType.DINE_IN:
                table.status = TableStatus.OCCUPIED
                table.updated_at = now
                session.add(table)

            order.status = OrderStatus.PAID
            order.updated_at = now
            session.add(order)
            session.commit()
        except CheckoutError as e:
            session.rollback()
            logger.info(
                "Checkout rolled back",
                phase=phase.value,
                rolled_back=CheckoutPhase.ROLLED_BACK.value,
                code=e.code,
                reason=e.reason,
                attempt=attempt,
            )
            raise
        except SQLAlchemyError as e:
            session.rollback()
            error = from_db_error(e)
            logger.error(
                "Checkout rolled back on storage error",
                phase=phase.value,
                code=error.code,
                attempt=attempt,
                error=str(e),
            )
            raise error from e

        session.refresh(order)
        self._phase(CheckoutPhase.COMMITTED, attempt)
        logger.info(
            "Checkout committed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
            attempt=attempt,
        )

        result = CheckoutResult(
            order_id=order.id,
            order_number=order.order_number,
            subtotal=order.subtotal,
            tax=order.tax,
            discount_amount=order.discount_amount,
            total=order.total,
            status=order.status,
            points_earned=order.points_earned,
            points_redeemed=order.points_redeemed,
        )
        event = OrderPlaced(
            order_id=order.id,
            order_number=order.order_number,
            restaurant_id=order.restaurant_id,
            table_id=order.table_id,
            total=float(order.total),
        )
        return result, event

    # Validation

    def _load_restaurant(self, restaurant_id: uuid.UUID) -> Restaurant:
        restaurant = self.session.get(Restaurant, restaurant_id)
        if not restaurant:
            raise NotFound("Restaurant not found")
        if not restaurant.is_active:
            raise ValidationError("Restaurant is not active")
        return restaurant

    def _check_capabilities(self, command: CheckoutCommand) -> None:
        self.capabilities.require(Permission.ORDER_CREATE)
        if command.discount_code:
            self.capabilities.require(Permission.ORDER_DISCOUNT)
        if command.loyalty_points_redeemed:
            self.capabilities.require(Permission.LOYALTY_REDEEM)

    def _resolve_lines(self, command: CheckoutCommand) -> List[_PricedLine]:
        if not command.items:
            raise ValidationError("Cart is empty")

        lines = []
        for request in command.items:
            if request.quantity < 1:
                raise ValidationError("Quantity must be at least 1")

            product = self.session.get(Product, request.product_id)
            if not product or product.restaurant_id != command.restaurant_id:
                raise ValidationError(f"Product {request.product_id} not found")
            if not product.is_available:
                raise ValidationError(f"Product {product.name} is not available")

            size = None
            if request.size_id:
                size = self.session.get(ProductSize, request.size_id)
                if not size or size.product_id != product.id:
                    raise ValidationError(f"Size {request.size_id} does not belong to {product.name}")
                if not size.is_available:
                    raise ValidationError(f"Size {size.name} is not available")

            if request.price is not None:
                unit_price = money(request.price)
            else:
                unit_price = catalog_unit_price(product.price, size.price_adjustment if size else None)

            lines.append(_PricedLine(
                product=product,
                size=size,
                unit_price=unit_price,
                quantity=request.quantity,
                notes=request.notes,
                addons=self._snapshot_addons(product, request.addons),
            ))
        return lines

    def _snapshot_addons(self, product: Product, requests: Sequence[AddonRequest]) -> List[AddonSnapshot]:
        snapshots = []
        for request in requests:
            if request.quantity < 1:
                raise ValidationError("Add-on quantity must be at least 1")

            addon = self.session.get(ProductAddon, request.id)
            if not addon or addon.product_id != product.id:
                raise ValidationError(f"Add-on {request.id} does not belong to {product.name}")
            addon_product = self.session.get(Product, addon.addon_product_id)
            if not addon_product:
                raise ValidationError(f"Add-on {request.id} not found")

            snapshots.append(AddonSnapshot(
                id=addon.id,
                name=addon_product.name,
                price=money(addon.effective_price(addon_product)),
                quantity=request.quantity,
            ))
        return snapshots

    def _load_customer(self, command: CheckoutCommand) -> Optional[Customer]:
        if command.loyalty_points_redeemed < 0:
            raise ValidationError("Redeemed points cannot be negative")

        if not command.customer_id:
            if command.loyalty_points_redeemed:
                raise ValidationError("Redeeming points requires a customer")
            return None

        if command.loyalty_points_redeemed and not self.schema.loyalty_ledger:
            raise ValidationError("Loyalty is not available")

        try:
            customer = loyalty.lock_customer(self.session, command.restaurant_id, command.customer_id)
        except (NotFound, PermissionDenied):
            raise ValidationError(f"Customer {command.customer_id} not found")

        if command.loyalty_points_redeemed > customer.loyalty_points:
            raise BusinessRuleViolation(
                Reason.INSUFFICIENT_POINTS,
                f"Customer only has {customer.loyalty_points} points."
            )
        return customer

    def _load_table(self, command: CheckoutCommand) -> Optional[Table]:
        if not command.table_id:
            return None

        table = self.session.get(Table, command.table_id)
        if not table or table.restaurant_id != command.restaurant_id:
            raise ValidationError(f"Table {command.table_id} not found")
        if not table.is_active:
            raise ValidationError(f"Table {table.table_number} is not active")
        return table

    # Pricing

    def _resolve_discount(
        self,
        command: CheckoutCommand,
        subtotal: Decimal,
    ) -> Tuple[Optional[Discount], Decimal]:
        """Re-validate the code under a row lock against the computed subtotal"""
        if not command.discount_code:
            return None, ZERO

        discount = discounts.find_by_code(
            self.session, command.restaurant_id, command.discount_code, lock=True
        )
        if discount is None:
            raise BusinessRuleViolation(Reason.INVALID_CODE, "Invalid discount code.")

        check = discounts.validate(discount, subtotal, self.clock())
        check.raise_for_reason()
        return discount, check.amount

    def _compare_client_totals(self, command: CheckoutCommand, breakdown: PriceBreakdown) -> None:
        submitted = {"subtotal": command.subtotal, "tax": command.tax, "total": command.total}
        computed = {"subtotal": breakdown.subtotal, "tax": breakdown.tax, "total": breakdown.total}

        mismatched = {
            name: {"submitted": str(value), "computed": str(computed[name])}
            for name, value in submitted.items()
            if value is not None and money(value) != computed[name]
        }
        if mismatched:
            logger.warning(
                "Submitted totals differ from computed totals",
                restaurant_id=str(command.restaurant_id),
                mismatched=mismatched,
            )

    # Persistence

    def _allocate_order_number(self, restaurant_id: uuid.UUID) -> str:
        for _ in range(max(1, settings.ORDER_NUMBER_MAX_ATTEMPTS)):
            number = self.number_factory()
            taken = self.session.exec(
                select(Order.id).where(
                    Order.restaurant_id == restaurant_id,
                    Order.order_number == number,
                )
            ).first()
            if taken is None:
                return number
            logger.warning("Order number collision", order_number=number)

        raise ConflictError("Could not allocate a unique order number")
