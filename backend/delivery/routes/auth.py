# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/delivery/routes/auth.py
"""
Authentication API routes

- Login returns a signed bearer token plus the user summary
- /me resolves the current user from the token's id claim
- Self-registration does not exist; accounts are created by an admin
"""

from flask import Blueprint, request, jsonify, g, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import DeliveryError
from ..services import auth_service, token_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a session token.

    Request body:
    {
        "username": "courier1",
        "password": "..."
    }

    Returns:
        200: {"token": "...", "user": {id, username, full_name, role, phone}}
        400: username or password missing
        401: unknown/inactive user or wrong password (no token issued)
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")

        user = auth_service.authenticate(username, password)
        token = token_service.issue_token(user)

        return jsonify({
            "token": token,
            "user": user.to_summary(),
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Database error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user summary, looked up by the token's id claim."""
    try:
        user = auth_service.get_user(g.current_user.id)
        return jsonify(user.to_summary()), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        current_app.logger.exception("Failed to load current user")
        return jsonify({"error": "Database error"}), 500
