# backend/quickpos/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .backend import EXTENSION_KEY, build_backends


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    app.extensions[EXTENSION_KEY] = build_backends(
        app.config["QUICKPOS_BACKEND"],
        bcrypt_rounds=app.config["BCRYPT_ROUNDS"],
    )

    # Register blueprints
    from .routes.system import system_bp
    from .routes.pages import pages_bp
    from .routes.actions import actions_bp
    from .routes.cart import cart_bp
    from .routes.register import register_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(pages_bp)
    app.register_blueprint(actions_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(register_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    app.logger.info("QuickPOS started with %s backend", app.config["QUICKPOS_BACKEND"])
    return app
