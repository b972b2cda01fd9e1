"""
Ledger reconciliation job

Checks that every stock-tracked product's quantity matches the tail of its
StockLog chain, that every customer's loyalty balance equals the sum of
their loyalty transactions, and that every order's totals balance.
Run periodically (e.g., via cron) or after a restore.
"""

import sys
from collections import defaultdict
from typing import Dict, List, Optional
import uuid

from sqlalchemy import func
from sqlmodel import Session, select
from restopos.core.database import engine
from restopos.models import Customer, LoyaltyTransaction, Order, Product, StockLog
import structlog

logger = structlog.get_logger(__name__)


def reconcile_stock(session: Session, restaurant_id: Optional[uuid.UUID] = None) -> List[Dict]:
    """Products whose quantity or log chain does not add up"""
    query = select(Product).where(Product.track_quantity == True)  # noqa: E712
    if restaurant_id:
        query = query.where(Product.restaurant_id == restaurant_id)

    problems = []
    for product in session.exec(query).all():
        logs = session.exec(
            select(StockLog)
            .where(StockLog.product_id == product.id)
            .order_by(StockLog.created_at.asc())
        ).all()
        if not logs:
            continue

        previous_after = None
        for log in logs:
            if log.quantity_after != max(0, log.quantity_before + log.quantity_change):
                problems.append({"product_id": str(product.id), "log_id": str(log.id), "problem": "bad arithmetic"})
            if previous_after is not None and log.quantity_before != previous_after:
                problems.append({"product_id": str(product.id), "log_id": str(log.id), "problem": "broken chain"})
            previous_after = log.quantity_after

        if previous_after != product.quantity:
            problems.append({
                "product_id": str(product.id),
                "problem": "quantity mismatch",
                "quantity": product.quantity,
                "ledger": previous_after,
            })

    return problems


def reconcile_loyalty(session: Session, restaurant_id: Optional[uuid.UUID] = None) -> List[Dict]:
    """Customers whose balance differs from their ledger sum"""
    sums = defaultdict(int)
    rows = session.exec(
        select(LoyaltyTransaction.customer_id, func.sum(LoyaltyTransaction.points))
        .group_by(LoyaltyTransaction.customer_id)
    ).all()
    for customer_id, total in rows:
        sums[customer_id] = int(total or 0)

    query = select(Customer)
    if restaurant_id:
        query = query.where(Customer.restaurant_id == restaurant_id)

    return [
        {
            "customer_id": str(customer.id),
            "problem": "balance mismatch",
            "loyalty_points": customer.loyalty_points,
            "ledger": sums[customer.id],
        }
        for customer in session.exec(query).all()
        if customer.loyalty_points != sums[customer.id]
    ]


def reconcile_orders(session: Session, restaurant_id: Optional[uuid.UUID] = None) -> List[Dict]:
    """Orders whose totals do not balance"""
    query = select(Order)
    if restaurant_id:
        query = query.where(Order.restaurant_id == restaurant_id)

    return [
        {"order_id": str(order.id), "order_number": order.order_number, "problem": "totals do not balance"}
        for order in session.exec(query).all()
        if not order.totals_balance() or order.discount_amount > order.subtotal
    ]


def reconcile_ledgers(session: Session, restaurant_id: Optional[uuid.UUID] = None) -> dict:
    results = {
        "stock": reconcile_stock(session, restaurant_id),
        "loyalty": reconcile_loyalty(session, restaurant_id),
        "orders": reconcile_orders(session, restaurant_id),
    }
    for ledger, problems in results.items():
        for problem in problems:
            logger.warning(f"{ledger} ledger problem: {problem}")
    return results


def main():
    """Main entry point for reconciliation job"""
    logger.info("=" * 80)
    logger.info("Starting Ledger Reconciliation Job")
    logger.info("=" * 80)

    with Session(engine) as session:
        results = reconcile_ledgers(session)

    problem_count = sum(len(problems) for problems in results.values())
    logger.info(f"Ledger Reconciliation Complete: {problem_count} problems")
    if problem_count:
        sys.exit(1)


if __name__ == "__main__":
    main()
