# Overview: Flask API routes for user management; parses input and returns JSON responses.

# backend/delivery/routes/users.py
"""
User management routes.

- List: admin and employee (employees need the courier list to assign orders;
  they only see active accounts)
- Get / create / update / delete: admin only
- Delete is a soft delete; an admin cannot delete their own account
"""

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import DeliveryError
from ..models import Role
from ..services import auth_service
from ..services.permission_service import USER_ADMIN_ROLES, USER_LIST_ROLES
from ..decorators import require_auth, require_role

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _storage_failure(message: str):
    db.session.rollback()
    current_app.logger.exception(message)
    return jsonify({"error": "Database error"}), 500


@users_bp.get("")
@require_auth
@require_role(*USER_LIST_ROLES)
def list_users_route():
    """
    List users, newest first.

    Query params:
    - role: admin | employee | courier
    """
    try:
        include_inactive = g.current_user.role is Role.ADMIN
        users = auth_service.list_users(include_inactive, request.args.get("role") or None)
        return jsonify([u.to_dict() for u in users]), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to list users")


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(*USER_ADMIN_ROLES)
def get_user_route(user_id: int):
    try:
        return jsonify(auth_service.get_user(user_id).to_dict()), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to load user")


@users_bp.post("")
@require_auth
@require_role(*USER_ADMIN_ROLES)
def create_user_route():
    """
    Create a new user.

    Request body:
    - username: str (required, unique)
    - password: str (required)
    - full_name: str (required)
    - role: admin | employee | courier (required)
    - phone: str (optional)
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.create_user(
            username=data.get("username"),
            password=data.get("password"),
            full_name=data.get("full_name"),
            role=data.get("role"),
            phone=data.get("phone"),
        )
        current_app.logger.info("User %s created by admin %s", user.username, g.current_user.id)
        return jsonify({
            "id": user.id,
            "user": user.to_dict(),
            "message": "User created successfully",
        }), 201

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to create user")


@users_bp.put("/<int:user_id>")
@require_auth
@require_role(*USER_ADMIN_ROLES)
def update_user_route(user_id: int):
    """
    Update a user. Accepts any of username, password, full_name, role,
    phone, is_active. A blank password leaves the current one in place.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.update_user(user_id, data)
        return jsonify({
            "user": user.to_dict(),
            "message": "User updated successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to update user")


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role(*USER_ADMIN_ROLES)
def delete_user_route(user_id: int):
    """Soft delete: marks the account inactive. Orders keep their references."""
    try:
        auth_service.deactivate_user(user_id, g.current_user.id)
        current_app.logger.info("User %s deactivated by admin %s", user_id, g.current_user.id)
        return jsonify({"message": "User deleted successfully"}), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to delete user")
