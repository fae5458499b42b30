# Overview: Domain error hierarchy shared by services and routes.

"""
Every error a service can raise derives from DeliveryError and carries the
HTTP status a route should answer with. Routes catch DeliveryError once and
render {"error": message}; anything else is a storage or programming fault.
"""


class DeliveryError(Exception):
    """Base class for expected, client-visible failures."""
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidInputError(DeliveryError, ValueError):
    """Malformed or missing field, or a value outside its enumeration."""
    status_code = 400
    default_message = "Invalid input"


class ConflictError(DeliveryError):
    """Duplicate unique value (e.g. username)."""
    status_code = 400
    default_message = "Username already exists"


class InvalidCredentialsError(DeliveryError):
    status_code = 401
    default_message = "Invalid username or password"


class AuthenticationRequiredError(DeliveryError):
    status_code = 401
    default_message = "Authentication required"


class InvalidTokenError(DeliveryError):
    status_code = 403
    default_message = "Invalid or expired token"


class ForbiddenError(DeliveryError):
    """Role or ownership violation."""
    status_code = 403
    default_message = "You do not have permission to access this resource"


class NotFoundError(DeliveryError):
    status_code = 404
    default_message = "Not found"


class PayloadTooLargeError(DeliveryError):
    status_code = 413
    default_message = "File too large"


class UnsupportedMediaTypeError(DeliveryError):
    status_code = 415
    default_message = "Unsupported file type"
