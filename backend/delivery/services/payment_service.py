# Overview: Service-layer operations for order payments; encapsulates business logic and database work.

"""
Payment Recording Service

WHY: Couriers collect cash on delivery and employees record payments at the
counter. Each collection is an immutable row.

DESIGN PRINCIPLES:
- Payments never change order status
- Split/partial payments: an order can have any number of rows
- Total paid is summed at read time; nothing is materialized on the order
- Amount is validated before the order is read, so a bad amount never
  reveals whether an order exists
"""

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Order, OrderPayment
from ..validation import parse_amount
from .order_service import get_order_for
from .token_service import TokenClaims
from delivery.time_utils import utcnow


def add_payment(claims: TokenClaims, order_id: int, amount) -> OrderPayment:
    """
    Record a payment against an order.

    Raises:
        InvalidInputError: amount missing, not a number, or not > 0
        NotFoundError: order does not exist
        ForbiddenError: courier recording against an order not assigned to them
    """
    value = parse_amount(amount)
    order = get_order_for(claims, order_id, "You do not have permission to record a payment for this order")

    payment = OrderPayment(
        order_id=order.id,
        amount=value,
        recorded_by=claims.id,
        payment_date=utcnow(),
    )
    db.session.add(payment)
    db.session.commit()
    current_app.logger.info("Payment %s of %s recorded on order %s by user %s", payment.id, value, order.id, claims.id)
    return payment


def list_payments(order: Order) -> list[OrderPayment]:
    return list(order.payments)


def total_paid(order: Order) -> Decimal:
    """Sum of all payment rows for the order."""
    total = db.session.query(db.func.coalesce(db.func.sum(OrderPayment.amount), 0)).filter(
        OrderPayment.order_id == order.id
    ).scalar()
    return Decimal(str(total)).quantize(Decimal("0.01"))
