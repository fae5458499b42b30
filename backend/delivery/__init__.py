# backend/delivery/__init__.py
from __future__ import annotations

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate



def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.orders import orders_bp
    from .routes.uploads import uploads_bp, files_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(uploads_bp)
    app.register_blueprint(files_bp)

    allowed_origins = {
        o.strip() for o in str(app.config.get("CORS_ORIGINS", "")).split(",") if o.strip()
    }

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and ("*" in allowed_origins or origin in allowed_origins):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        # 413 from MAX_CONTENT_LENGTH, unknown routes and methods all answer in JSON
        if e.code == 413:
            return jsonify({"error": "File too large. Maximum size is 10 MB"}), 413
        return jsonify({"error": e.description or e.name}), e.code

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("BOOTSTRAP_ON_STARTUP"):
        from .services.bootstrap_service import init_database
        with app.app_context():
            if init_database():
                app.logger.warning(
                    "Default admin account created (username 'admin'). Change its password."
                )

    return app
