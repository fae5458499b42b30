# Overview: Service-layer rules for the order lifecycle; status values, entry-point transitions and field permissions.

"""
Order Lifecycle Rules

================================================================================
PURPOSE: Decide which status an order lands in, and who may change what
================================================================================

STATUSES:
    preparing -> assigned -> in_delivery -> delivered | device_received
    cancelled is reachable from any state

ENTRY POINTS (each stamps updated_at when it persists):
    create   : assignee supplied -> assigned, otherwise preparing
    assign   : always -> assigned, whatever the current status
    status   : any of the six values; no ordering is enforced
    receive  : -> in_delivery for every service type

FIELD PERMISSIONS:
    customer_name, customer_phone, address, service_type, assigned_to
        admin / employee only; a courier request carrying any of them is
        refused as a whole, even when it also carries status
    status, details
        anyone who passes ownership scoping

The explicit status endpoint is permissive: delivered -> preparing is
accepted. can_transition() documents that policy in one place so a stricter
table can replace it without touching the routes.
================================================================================
"""

from __future__ import annotations

from typing import Iterable

from ..errors import ForbiddenError, InvalidInputError
from ..models import OrderStatus, ServiceType
from ..validation import parse_enum
from .token_service import TokenClaims


VALID_STATUSES = frozenset(s.value for s in OrderStatus)

# Fields only admin / employee may write
PROTECTED_FIELDS = (
    "customer_name",
    "customer_phone",
    "address",
    "service_type",
    "assigned_to",
)

# Both service-type branches of courier pickup land on in_delivery. A repair
# pickup is only marked device_received once the device reaches the shop.
RECEIVE_TARGET_STATUS = {
    ServiceType.SALE: OrderStatus.IN_DELIVERY,
    ServiceType.SEND_AFTER_REPAIR: OrderStatus.IN_DELIVERY,
    ServiceType.RECEIVE_FOR_REPAIR: OrderStatus.IN_DELIVERY,
}


def validate_status(status) -> OrderStatus:
    """
    Validate that a status value is one of the allowed states.

    Raises:
        InvalidInputError: If status is missing or not one of the six values
    """
    if status is None or status == "":
        raise InvalidInputError("status is required")
    return parse_enum(OrderStatus, status, "status")


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    """
    Explicit status changes are not ordered: every enumerated target is
    accepted from every current status.
    """
    return to_status in OrderStatus


def initial_status(assigned_to: int | None) -> OrderStatus:
    """Status of a freshly created order."""
    return OrderStatus.ASSIGNED if assigned_to else OrderStatus.PREPARING


def status_after_assign(current: OrderStatus) -> OrderStatus:
    return OrderStatus.ASSIGNED


def status_after_receive(service_type: ServiceType) -> OrderStatus:
    return RECEIVE_TARGET_STATUS[service_type]


def protected_fields_in(changes: Iterable[str]) -> list[str]:
    keys = set(changes)
    return [f for f in PROTECTED_FIELDS if f in keys]


def check_field_permissions(claims: TokenClaims, changes: dict) -> None:
    """
    Refuse the whole update when a courier touches an admin/employee field.
    Presence of the key is what counts, not whether the value differs.
    """
    if not claims.is_courier:
        return
    touched = protected_fields_in(changes.keys())
    if touched:
        raise ForbiddenError(
            f"Couriers cannot modify: {', '.join(touched)}"
        )
