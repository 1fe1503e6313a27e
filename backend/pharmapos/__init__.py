# backend/pharmapos/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(config_object=Config, overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Process-wide state: snapshot cache and per-user POS carts
    from .services.state_store import init_state_store
    from .services.cart import CartRegistry
    init_state_store(app)
    app.extensions[CartRegistry.EXTENSION_KEY] = CartRegistry()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.screens import screens_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.pos import pos_bp
    from .routes.customers import customers_bp
    from .routes.deposits import deposits_bp
    from .routes.audit import audit_bp
    from .routes.wholesalers import wholesalers_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(screens_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(deposits_bp)
    app.register_blueprint(audit_bp)
    app.register_blueprint(wholesalers_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = set(app.config.get("ALLOWED_ORIGINS", []))

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
