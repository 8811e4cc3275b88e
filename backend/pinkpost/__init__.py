# backend/pinkpost/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate, gateway, mailer


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    gateway.init_app(app)
    mailer.init_app(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.catalog import catalog_bp
    from .routes.orders import orders_bp
    from .routes.admin import admin_bp
    from .routes.promotions import promotions_bp
    from .routes.tax import tax_bp
    from .routes.payments import payments_bp
    from .routes.installations import installations_bp
    from .routes.inventory import inventory_bp
    from .routes.notifications import notifications_bp
    from .routes.webhooks import webhooks_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(promotions_bp)
    app.register_blueprint(tax_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(installations_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(webhooks_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS") or ())
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
