# Overview: Idempotent database bootstrap run at startup and by `flask system init`.

from flask import current_app

from ..extensions import db
from .auth_service import ensure_default_admin


def init_database() -> bool:
    """
    Create missing tables and seed the default admin account.

    Safe to run on every start. Returns True when the admin was created.
    """
    # Import models so metadata is populated before create_all
    from .. import models  # noqa: F401

    db.create_all()
    return ensure_default_admin(current_app.config["DEFAULT_ADMIN_PASSWORD"])
