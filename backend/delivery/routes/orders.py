# Overview: Flask API routes for order operations; parses input and returns JSON responses.

# backend/delivery/routes/orders.py
"""
Order API Routes

DESIGN:
- Couriers only see and touch orders assigned to them
- Core fields (customer, address, service type, assignee) are admin/employee only
- Status may be set by anyone who can see the order
- Payments are append-only rows; total paid is computed on read

SECURITY:
- All routes require a bearer token
- Create and assign require admin or employee
- Receive requires courier and the caller must be the assignee
"""

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import DeliveryError
from ..services.permission_service import COURIER_ROLES, ORDER_MANAGER_ROLES
from ..services import order_service, payment_service
from ..services.order_service import OrderFilters
from ..decorators import require_auth, require_role


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _storage_failure(message: str):
    db.session.rollback()
    current_app.logger.exception(message)
    return jsonify({"error": "Database error"}), 500


# =============================================================================
# QUERIES
# =============================================================================

@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    List orders, newest first.

    Query params (all optional):
    - status: preparing | assigned | in_delivery | delivered | device_received | cancelled
    - service_type: sale | send_after_repair | receive_for_repair
    - assigned_to / courier_id: courier user id (ignored for couriers)
    - search: case-insensitive match on customer name or phone

    Couriers always receive only their own orders.
    """
    try:
        filters = OrderFilters.from_args(request.args)
        orders = order_service.list_orders(g.current_user, filters)
        return jsonify([order_service.serialize_order(o) for o in orders]), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to list orders")


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    """
    Single order with details, images (newest first), the signature in
    effect, payments and the computed total paid.
    """
    try:
        order = order_service.get_order_for(
            g.current_user, order_id, "You do not have permission to view this order"
        )
        return jsonify(order_service.serialize_order_full(order)), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to load order")


# =============================================================================
# MUTATIONS
# =============================================================================

@orders_bp.post("")
@require_auth
@require_role(*ORDER_MANAGER_ROLES)
def create_order_route():
    """
    Create an order.

    Request body:
    {
        "customer_name": "...",        (required)
        "customer_phone": "...",       (required)
        "address": "...",              (required)
        "service_type": "sale",        (required)
        "assigned_to": 7,              (optional courier id -> status "assigned")
        "details": {"model": "..."}    (optional; extra top-level keys are details too)
    }

    Returns:
        201: {"id", "order", "message"}
    """
    try:
        order = order_service.create_order(g.current_user, request.get_json(silent=True))
        return jsonify({
            "id": order.id,
            "order": order_service.serialize_order(order),
            "message": "Order created successfully",
        }), 201

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to create order")


@orders_bp.put("/<int:order_id>")
@require_auth
def update_order_route(order_id: int):
    """
    Partial update of an order.

    Couriers may only send "status" and "details"; any core field in a
    courier request rejects the whole request with 403.
    """
    try:
        order = order_service.update_order(g.current_user, order_id, request.get_json(silent=True))
        return jsonify({
            "order": order_service.serialize_order(order),
            "message": "Order updated successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to update order")


@orders_bp.post("/<int:order_id>/assign")
@require_auth
@require_role(*ORDER_MANAGER_ROLES)
def assign_order_route(order_id: int):
    """
    Assign a courier. Status becomes "assigned" regardless of current status.

    Request body: {"assigned_to": <courier id>}
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.assign_order(order_id, data.get("assigned_to"))
        return jsonify({
            "order": order_service.serialize_order(order),
            "message": "Order assigned to courier successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to assign order")


@orders_bp.post("/<int:order_id>/status")
@require_auth
def update_status_route(order_id: int):
    """
    Set order status.

    Request body: {"status": "delivered"}

    Any of the six statuses is accepted from any current status.
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.set_status(g.current_user, order_id, data.get("status"))
        return jsonify({
            "order": order_service.serialize_order(order),
            "message": "Order status updated successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to update order status")


@orders_bp.post("/<int:order_id>/receive")
@require_auth
@require_role(*COURIER_ROLES)
def receive_order_route(order_id: int):
    """Courier picks the order up; status moves to in_delivery."""
    try:
        order = order_service.receive_order(g.current_user, order_id)
        return jsonify({
            "order": order_service.serialize_order(order),
            "message": "Order received successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to receive order")


# =============================================================================
# PAYMENTS
# =============================================================================

@orders_bp.post("/<int:order_id>/payment")
@require_auth
def add_payment_route(order_id: int):
    """
    Record a payment.

    Request body: {"amount": 150.5}

    Returns:
        200: {"id", "payment", "total_paid", "message"}
        400: amount missing or <= 0 (nothing recorded)
    """
    try:
        data = request.get_json(silent=True) or {}
        payment = payment_service.add_payment(g.current_user, order_id, data.get("amount"))
        total = payment_service.total_paid(payment.order)
        return jsonify({
            "id": payment.id,
            "payment": payment.to_dict(),
            "total_paid": float(total),
            "message": "Payment recorded successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to record payment")
