# Overview: Service-layer operations for auth and user accounts; encapsulates business logic and database work.

"""
Credential store and user management.

WHY: Every order mutation is attributed to a user, and the role on that user
drives every authorization decision. Users are created by an admin (or the
CLI / startup bootstrap) and are never hard-deleted.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Login only considers active accounts
- Username is unique across active and inactive accounts
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import ConflictError, InvalidCredentialsError, InvalidInputError, NotFoundError
from ..models import Role, User
from ..validation import clean_text, optional_text, parse_enum, require_fields


MIN_PASSWORD_LENGTH = 6
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_FULL_NAME = "System Administrator"


class PasswordValidationError(InvalidInputError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    A malformed stored hash counts as a mismatch rather than a server error.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def find_by_username(username: str) -> User | None:
    return db.session.query(User).filter_by(username=username).first()


def authenticate(username: str, password: str) -> User:
    """
    Authenticate user with username and password.

    Raises InvalidCredentialsError when no active user carries the username
    or the password does not match. Both cases produce the same message.
    """
    if not username or not password:
        raise InvalidInputError("Username and password are required")

    user = db.session.query(User).filter(
        User.username == username,
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        current_app.logger.warning("Authentication failed for username %r", username)
        raise InvalidCredentialsError()

    return user


def _ensure_username_available(username: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.username == username)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError("Username already exists")


def _commit_user_change() -> None:
    """Commit, translating a lost unique-username race into ConflictError."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already exists")


def create_user(
    username: str,
    password: str,
    full_name: str,
    role: Role | str,
    phone: str | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        InvalidInputError: missing field, bad role, weak password
        ConflictError: username already taken (active or inactive)
    """
    require_fields(
        {"username": username, "password": password, "full_name": full_name, "role": role},
        ("username", "password", "full_name", "role"),
    )
    username = clean_text(username, "username", max_length=64)
    full_name = clean_text(full_name, "full_name", max_length=255)
    role = parse_enum(Role, role, "role")

    _ensure_username_available(username)

    user = User(
        username=username,
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
        phone=optional_text(phone, "phone"),
        is_active=True,
    )
    db.session.add(user)
    _commit_user_change()
    return user


def update_user(user_id: int, changes: dict) -> User:
    """
    Apply an admin edit. Only keys present in `changes` are touched; a blank
    password means "keep the current one".
    """
    user = get_user(user_id)

    if "full_name" in changes:
        user.full_name = clean_text(changes["full_name"], "full_name", max_length=255)
    if "role" in changes:
        user.role = parse_enum(Role, changes["role"], "role")
    if "phone" in changes:
        user.phone = optional_text(changes["phone"], "phone")
    if "is_active" in changes and changes["is_active"] is not None:
        user.is_active = bool(changes["is_active"])
    if "username" in changes:
        username = clean_text(changes["username"], "username", max_length=64)
        if username != user.username:
            _ensure_username_available(username, exclude_user_id=user.id)
            user.username = username
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])

    _commit_user_change()
    return user


def deactivate_user(user_id: int, acting_user_id: int) -> User:
    """
    Soft delete: the row stays so historical references remain valid.
    """
    if user_id == acting_user_id:
        raise InvalidInputError("You cannot delete your own account")

    user = get_user(user_id)
    user.is_active = False
    db.session.commit()
    return user


def list_users(include_inactive: bool, role: Role | str | None = None) -> list[User]:
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == parse_enum(Role, role, "role"))
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def ensure_default_admin(password: str) -> bool:
    """
    Create the bootstrap admin account if no user named "admin" exists.

    Returns True when the account was created. Idempotent.
    """
    if find_by_username(DEFAULT_ADMIN_USERNAME):
        return False

    user = User(
        username=DEFAULT_ADMIN_USERNAME,
        password_hash=hash_password(password),
        full_name=DEFAULT_ADMIN_FULL_NAME,
        role=Role.ADMIN,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Created default admin account")
    return True
