# backend/stockroom/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None, permission_policy=None) -> Flask:
    """
    Application factory.

    config_overrides is applied on top of Config (tests pass an in-memory
    database here). permission_policy replaces the default role-table
    policy used by every permission check.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.permission_service import POLICY_EXTENSION_KEY, RolePermissionPolicy
    app.extensions[POLICY_EXTENSION_KEY] = permission_policy or RolePermissionPolicy()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.pages import pages_bp
    from .routes.auth import auth_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.customers import customers_bp
    from .routes.providers import providers_bp
    from .routes.branches import branches_bp
    from .routes.roles import roles_bp
    from .routes.purchases import purchases_bp
    from .routes.sales import sales_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(providers_bp)
    app.register_blueprint(branches_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(purchases_bp)
    app.register_blueprint(sales_bp)

    from .errors import register_error_handlers
    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
            response.headers["Access-Control-Expose-Headers"] = "Content-Disposition"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
