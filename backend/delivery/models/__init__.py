# Overview: SQLAlchemy models package; re-exports every model and enum.

from .auth import Role, User
from .orders import (
    ImageType,
    Order,
    OrderDetail,
    OrderImage,
    OrderPayment,
    OrderSignature,
    OrderStatus,
    ServiceType,
)

__all__ = [
    "Role",
    "User",
    "ImageType",
    "Order",
    "OrderDetail",
    "OrderImage",
    "OrderPayment",
    "OrderSignature",
    "OrderStatus",
    "ServiceType",
]
