# Overview: Service-layer role and ownership checks (the authorizer).

"""
Role Gate and Courier Ownership Scoping

DESIGN PRINCIPLES:
- Fail closed: a role not listed is denied
- Pure functions over verified token claims; no database access
- Couriers act only on orders assigned to them; admin and employee are unscoped
"""

from typing import Iterable

from ..errors import ForbiddenError
from ..models import Order, Role
from .token_service import TokenClaims


# Roles allowed to manage orders (create, assign, edit core fields)
ORDER_MANAGER_ROLES = frozenset({Role.ADMIN, Role.EMPLOYEE})
USER_LIST_ROLES = frozenset({Role.ADMIN, Role.EMPLOYEE})
USER_ADMIN_ROLES = frozenset({Role.ADMIN})
COURIER_ROLES = frozenset({Role.COURIER})


def has_role(claims: TokenClaims, allowed_roles: Iterable[Role]) -> bool:
    return claims.role in frozenset(allowed_roles)


def require_role(claims: TokenClaims, allowed_roles: Iterable[Role]) -> None:
    """Raise ForbiddenError unless the caller holds one of allowed_roles."""
    if not has_role(claims, allowed_roles):
        raise ForbiddenError("You do not have permission to access this resource")


def can_access_order(claims: TokenClaims, order: Order) -> bool:
    if claims.is_courier:
        return order.assigned_to == claims.id
    return True


def ensure_order_access(claims: TokenClaims, order: Order, message: str | None = None) -> None:
    """
    Ownership scoping: a courier may only see or act on an order assigned
    to them.
    """
    if not can_access_order(claims, order):
        raise ForbiddenError(message or "You do not have permission to access this order")
