# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Service

WHY: Orders are the unit of work for employees and couriers. This module
applies the lifecycle rules (lifecycle_service) and the role/ownership gate
(permission_service) and then persists through SQLAlchemy.

DESIGN:
- Service-type specific attributes are a flat key/value map stored as
  OrderDetail rows; writing a key overwrites it, unsent keys are untouched
- Couriers only ever see orders assigned to them
- Every persisted change stamps updated_at
- No optimistic locking: concurrent writers to one order are last-write-wins
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..errors import ForbiddenError, InvalidInputError, NotFoundError
from ..models import Order, OrderDetail, OrderStatus, Role, ServiceType, User
from ..validation import clean_text, ensure_payload, parse_enum, parse_id, require_fields, stringify_detail
from . import lifecycle_service, permission_service
from .token_service import TokenClaims
from delivery.time_utils import utcnow


ORDER_CORE_FIELDS = ("customer_name", "customer_phone", "address", "service_type", "assigned_to")

# Top-level keys on create that are neither core fields nor detail fields
RESERVED_CREATE_KEYS = frozenset({
    "id", "details", "status", "created_by", "created_at", "updated_at",
})

_TEXT_LIMITS = {
    "customer_name": 255,
    "customer_phone": 32,
    "address": None,
}


@dataclass(frozen=True)
class OrderFilters:
    status: OrderStatus | None = None
    service_type: ServiceType | None = None
    assigned_to: int | None = None
    courier_id: int | None = None
    search: str | None = None

    @classmethod
    def from_args(cls, args) -> "OrderFilters":
        """Build filters from request query args; blank values are ignored."""
        def _arg(name):
            value = args.get(name)
            if value is None or str(value).strip() == "":
                return None
            return str(value).strip()

        status = _arg("status")
        service_type = _arg("service_type")
        assigned_to = _arg("assigned_to")
        courier_id = _arg("courier_id")
        return cls(
            status=parse_enum(OrderStatus, status, "status") if status else None,
            service_type=parse_enum(ServiceType, service_type, "service_type") if service_type else None,
            assigned_to=parse_id(assigned_to, "assigned_to") if assigned_to else None,
            courier_id=parse_id(courier_id, "courier_id") if courier_id else None,
            search=_arg("search"),
        )


# =============================================================================
# LOOKUPS
# =============================================================================

def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def get_order_for(claims: TokenClaims, order_id: int, message: str | None = None) -> Order:
    """Fetch an order and apply courier ownership scoping (404 before 403)."""
    order = get_order(order_id)
    permission_service.ensure_order_access(claims, order, message)
    return order


def resolve_courier(value) -> int:
    """
    An assignee must be an existing, active courier at write time.
    """
    if value is None or value == "":
        raise InvalidInputError("assigned_to is required")
    user_id = parse_id(value, "assigned_to")
    user = db.session.get(User, user_id)
    if not user:
        raise InvalidInputError("Assigned user does not exist")
    if user.role is not Role.COURIER:
        raise InvalidInputError("Orders can only be assigned to couriers")
    if not user.is_active:
        raise InvalidInputError("Assigned courier is inactive")
    return user.id


def display_name(user: User | None) -> str | None:
    return user.full_name if user else None


def _safe_display_name(order: Order, attr: str) -> str | None:
    # Names are decoration; a failed lookup must not fail the request
    try:
        return display_name(getattr(order, attr))
    except SQLAlchemyError:
        current_app.logger.warning("Could not resolve %s for order %s", attr, order.id)
        return None


def serialize_order(order: Order) -> dict:
    """List view: order row, resolved names and flattened details."""
    data = order.to_dict()
    data["assigned_to_name"] = _safe_display_name(order, "assignee")
    data["created_by_name"] = _safe_display_name(order, "creator")
    data["details"] = order.details_map()
    return data


def serialize_order_full(order: Order) -> dict:
    """Single-order view: adds images, latest signature and payments."""
    from .payment_service import list_payments, total_paid

    data = serialize_order(order)
    data["images"] = [img.to_dict() for img in order.images]
    data["signature"] = order.signatures[0].to_dict() if order.signatures else None
    data["payments"] = [p.to_dict() for p in list_payments(order)]
    data["total_paid"] = float(total_paid(order))
    return data


# =============================================================================
# QUERIES
# =============================================================================

def list_orders(claims: TokenClaims, filters: OrderFilters) -> list[Order]:
    """
    List orders visible to the caller, newest first.

    Couriers are pinned to their own orders; assigned_to and courier_id
    filters are ignored for them.
    """
    query = db.session.query(Order).options(
        selectinload(Order.details),
        selectinload(Order.assignee),
        selectinload(Order.creator),
    )

    if claims.is_courier:
        query = query.filter(Order.assigned_to == claims.id)
    else:
        if filters.assigned_to is not None:
            query = query.filter(Order.assigned_to == filters.assigned_to)
        if filters.courier_id is not None:
            query = query.filter(Order.assigned_to == filters.courier_id)

    if filters.status is not None:
        query = query.filter(Order.status == filters.status)
    if filters.service_type is not None:
        query = query.filter(Order.service_type == filters.service_type)
    if filters.search:
        term = filters.search.lower()
        query = query.filter(db.or_(
            db.func.lower(Order.customer_name).contains(term, autoescape=True),
            db.func.lower(Order.customer_phone).contains(term, autoescape=True),
        ))

    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


# =============================================================================
# DETAILS
# =============================================================================

def upsert_details(order: Order, details: dict) -> bool:
    """
    Write each submitted key, leaving other keys untouched. Null values are
    skipped. Returns True when at least one row was written.
    """
    if not isinstance(details, dict):
        raise InvalidInputError("details must be an object")

    existing = {d.field_name: d for d in order.details}
    written = False
    for key, value in details.items():
        if value is None:
            continue
        field_name = clean_text(key, "detail field name", max_length=128)
        text = stringify_detail(value)
        row = existing.get(field_name)
        if row is None:
            row = OrderDetail(field_name=field_name, field_value=text)
            order.details.append(row)
            existing[field_name] = row
        else:
            row.field_value = text
        written = True
    return written


def _collect_create_details(payload: dict) -> dict:
    """
    Details arrive either nested under "details" or as extra top-level
    keys; both are merged, nested values winning.
    """
    flattened = {
        k: v for k, v in payload.items()
        if k not in ORDER_CORE_FIELDS and k not in RESERVED_CREATE_KEYS
    }
    nested = payload.get("details") or {}
    if not isinstance(nested, dict):
        raise InvalidInputError("details must be an object")
    return {**flattened, **nested}


# =============================================================================
# ENTRY POINTS
# =============================================================================

def create_order(claims: TokenClaims, payload: dict) -> Order:
    """
    Create an order. Supplying an assignee puts the order straight into
    "assigned"; otherwise it starts as "preparing".
    """
    payload = ensure_payload(payload)
    require_fields(payload, ("customer_name", "customer_phone", "address", "service_type"))

    assigned_to = payload.get("assigned_to")
    assignee_id = resolve_courier(assigned_to) if assigned_to not in (None, "", 0) else None

    now = utcnow()
    order = Order(
        customer_name=clean_text(payload["customer_name"], "customer_name", max_length=255),
        customer_phone=clean_text(payload["customer_phone"], "customer_phone", max_length=32),
        address=clean_text(payload["address"], "address"),
        service_type=parse_enum(ServiceType, payload["service_type"], "service_type"),
        status=lifecycle_service.initial_status(assignee_id),
        assigned_to=assignee_id,
        created_by=claims.id,
        created_at=now,
        updated_at=now,
    )
    upsert_details(order, _collect_create_details(payload))

    db.session.add(order)
    db.session.commit()
    current_app.logger.info("Order %s created by user %s (status=%s)", order.id, claims.id, order.status.value)
    return order


def update_order(claims: TokenClaims, order_id: int, payload: dict) -> Order:
    """
    Partial update. Core fields are admin/employee only; status and details
    are open to any caller who can see the order.
    """
    payload = ensure_payload(payload)
    order = get_order_for(claims, order_id, "You do not have permission to modify this order")
    lifecycle_service.check_field_permissions(claims, payload)
    details = payload.get("details")
    if details is not None and not isinstance(details, dict):
        raise InvalidInputError("details must be an object")

    changes = {}
    for field, limit in _TEXT_LIMITS.items():
        if field in payload:
            changes[field] = clean_text(payload[field], field, max_length=limit)
    if "service_type" in payload:
        changes["service_type"] = parse_enum(ServiceType, payload["service_type"], "service_type")
    if "assigned_to" in payload:
        value = payload["assigned_to"]
        changes["assigned_to"] = None if value in (None, "") else resolve_courier(value)
    if "status" in payload:
        status = lifecycle_service.validate_status(payload["status"])
        if not lifecycle_service.can_transition(order.status, status):
            raise InvalidInputError(f"Cannot move order from {order.status.value} to {status.value}")
        changes["status"] = status

    for field, value in changes.items():
        setattr(order, field, value)

    details_written = upsert_details(order, details) if details is not None else False

    if changes or details_written:
        order.updated_at = utcnow()
        db.session.commit()
    return order


def assign_order(order_id: int, assigned_to) -> Order:
    """Assign a courier; the order becomes "assigned" whatever its status."""
    if assigned_to is None or assigned_to == "":
        raise InvalidInputError("assigned_to is required")

    order = get_order(order_id)
    order.assigned_to = resolve_courier(assigned_to)
    order.status = lifecycle_service.status_after_assign(order.status)
    order.updated_at = utcnow()
    db.session.commit()
    current_app.logger.info("Order %s assigned to courier %s", order.id, order.assigned_to)
    return order


def set_status(claims: TokenClaims, order_id: int, status) -> Order:
    new_status = lifecycle_service.validate_status(status)
    order = get_order_for(claims, order_id, "You do not have permission to change this order's status")
    if not lifecycle_service.can_transition(order.status, new_status):
        raise InvalidInputError(f"Cannot move order from {order.status.value} to {new_status.value}")

    order.status = new_status
    order.updated_at = utcnow()
    db.session.commit()
    current_app.logger.info("Order %s status set to %s by user %s", order.id, new_status.value, claims.id)
    return order


def receive_order(claims: TokenClaims, order_id: int) -> Order:
    """Courier pickup: only the assignee may receive, and it moves to in_delivery."""
    order = get_order(order_id)
    if order.assigned_to != claims.id:
        raise ForbiddenError("This order is not assigned to you")

    order.status = lifecycle_service.status_after_receive(order.service_type)
    order.updated_at = utcnow()
    db.session.commit()
    current_app.logger.info("Order %s received by courier %s", order.id, claims.id)
    return order
