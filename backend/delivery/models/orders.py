from __future__ import annotations

import enum

from ..extensions import db
from .auth import enum_values
from delivery.time_utils import to_utc_z, utcnow


class ServiceType(str, enum.Enum):
    SALE = "sale"
    SEND_AFTER_REPAIR = "send_after_repair"
    RECEIVE_FOR_REPAIR = "receive_for_repair"


class OrderStatus(str, enum.Enum):
    PREPARING = "preparing"
    ASSIGNED = "assigned"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"
    DEVICE_RECEIVED = "device_received"
    CANCELLED = "cancelled"


class ImageType(str, enum.Enum):
    BEFORE_SEND = "before_send"
    AFTER_RECEIVE = "after_receive"
    DEVICE_CONDITION = "device_condition"


def _enum_column(enum_cls, name: str):
    return db.Enum(enum_cls, name=name, native_enum=False, length=32,
                   values_callable=enum_values, validate_strings=True)


class Order(db.Model):
    """
    Delivery / repair order.

    Orders are never deleted; cancellation is a status. Service-type specific
    attributes (device model, repair notes, ...) live in OrderDetail rows.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_assigned_status", "assigned_to", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    address = db.Column(db.Text, nullable=False)
    service_type = db.Column(_enum_column(ServiceType, "order_service_type"), nullable=False)
    status = db.Column(
        _enum_column(OrderStatus, "order_status"),
        nullable=False,
        default=OrderStatus.PREPARING,
        index=True,
    )

    # Courier currently responsible for the order
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    assignee = db.relationship("User", foreign_keys=[assigned_to])
    creator = db.relationship("User", foreign_keys=[created_by])

    details = db.relationship(
        "OrderDetail",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderDetail.id",
    )
    images = db.relationship(
        "OrderImage",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by=lambda: [OrderImage.uploaded_at.desc(), OrderImage.id.desc()],
    )
    signatures = db.relationship(
        "OrderSignature",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by=lambda: [OrderSignature.signed_at.desc(), OrderSignature.id.desc()],
    )
    payments = db.relationship(
        "OrderPayment",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by=lambda: [OrderPayment.payment_date.desc(), OrderPayment.id.desc()],
    )

    def details_map(self) -> dict[str, str | None]:
        return {d.field_name: d.field_value for d in self.details}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "address": self.address,
            "service_type": self.service_type.value,
            "status": self.status.value,
            "assigned_to": self.assigned_to,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class OrderDetail(db.Model):
    """Sparse key/value attribute of an order. One row per (order, field_name)."""
    __tablename__ = "order_details"
    __table_args__ = (
        db.UniqueConstraint("order_id", "field_name", name="uq_order_details_order_field"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = db.Column(db.String(128), nullable=False)
    field_value = db.Column(db.Text, nullable=True)


class OrderImage(db.Model):
    __tablename__ = "order_images"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    image_path = db.Column(db.String(1024), nullable=False)
    image_type = db.Column(_enum_column(ImageType, "order_image_type"), nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    uploaded_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "image_path": self.image_path,
            "image_type": self.image_type.value,
            "uploaded_by": self.uploaded_by,
            "uploaded_at": to_utc_z(self.uploaded_at),
        }


class OrderSignature(db.Model):
    """Append-only; the newest row is the signature in effect."""
    __tablename__ = "order_signatures"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    signature_data = db.Column(db.Text, nullable=False)
    signed_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "signature_data": self.signature_data,
            "signed_at": to_utc_z(self.signed_at),
        }


class OrderPayment(db.Model):
    """
    Immutable payment row. The amount paid on an order is the sum of its
    rows and is never stored on the order itself.
    """
    __tablename__ = "order_payments"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_order_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount": float(self.amount),
            "recorded_by": self.recorded_by,
            "payment_date": to_utc_z(self.payment_date),
        }
