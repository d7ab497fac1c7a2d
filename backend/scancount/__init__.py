# backend/scancount/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # External registry clients, in fallback order (tests swap these out)
    from .services.product_registries import build_registries
    app.extensions["barcode_registries"] = build_registries(app.config)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.barcode import barcode_bp
    from .routes.scanning import scanning_bp
    from .routes.stock import stock_bp
    from .routes.vendors import vendors_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(barcode_bp)
    app.register_blueprint(scanning_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(vendors_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in set(app.config["CORS_ALLOWED_ORIGINS"]):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
