# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import AuthenticationRequiredError, DeliveryError, ForbiddenError
from .services import permission_service, token_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def _error(e: DeliveryError):
    return jsonify({"error": e.message}), e.status_code


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the verified TokenClaims (id, username, role).
    Verification is stateless; no database access happens here.

    Returns 401 when the Authorization header is missing and 403 when the
    token is invalid or expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        parts = auth_header.split(" ", 1)

        if len(parts) != 2 or parts[0] != "Bearer" or not parts[1].strip():
            return _error(AuthenticationRequiredError())

        try:
            g.current_user = token_service.decode_token(parts[1].strip())
        except DeliveryError as e:
            return _error(e)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """
    Require the authenticated caller to hold one of the given roles.

    Must be stacked below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return _error(AuthenticationRequiredError())

            try:
                permission_service.require_role(g.current_user, roles)
            except ForbiddenError as e:
                return _error(e)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
