from __future__ import annotations

import enum

from ..extensions import db
from delivery.time_utils import to_utc_z


def enum_values(enum_cls) -> list[str]:
    """Persist enum members by value ("courier"), not by name ("COURIER")."""
    return [member.value for member in enum_cls]


class Role(str, enum.Enum):
    """
    Closed set of roles. Role drives every authorization decision, so it is
    never handled as a free-form string inside the application.
    """
    ADMIN = "admin"
    EMPLOYEE = "employee"
    COURIER = "courier"


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Users are never hard-deleted: deleting an account flips is_active so that
    orders, images and payments keep pointing at a real row. Username is
    unique across active and inactive accounts.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(Role, name="user_role", native_enum=False, length=16,
                values_callable=enum_values, validate_strings=True),
        nullable=False,
    )
    phone = db.Column(db.String(32), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_summary(self) -> dict:
        """Shape returned by login and /me."""
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role.value,
            "phone": self.phone,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_summary(),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
