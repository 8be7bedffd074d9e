"""
Factory for the Tavola API service (REST).
Serves the ordering, reservation, payment and chat endpoints under /api.

Uses JWT bearer tokens for admin authentication instead of server-side sessions.
"""

from __future__ import annotations

from typing import Any

from flask import Flask
from flask_cors import CORS

from tavola_api.routes.api import api_bp
from tavola_shared.chat import get_chat_model_client
from tavola_shared.config import load_config, validate_required_env_vars
from tavola_shared.db import init_db, init_engine
from tavola_shared.error_handlers import register_error_handlers
from tavola_shared.jwt_middleware import init_jwt_middleware
from tavola_shared.logging_config import configure_logging
from tavola_shared.models import Base
from tavola_shared.services.payment_providers import StripeCheckoutProvider


def create_app(testing: bool = False, overrides: dict[str, Any] | None = None) -> Flask:
    # Validate all required environment variables (fail-fast)
    if not testing:
        validate_required_env_vars(skip_in_debug=True)

    app = Flask(__name__)
    config = load_config("tavola-api")

    configure_logging(config.app_name, config.log_level)

    # Basic Config
    app.config["SECRET_KEY"] = config.secret_key
    app.config["JWT_SECRET"] = config.jwt_secret
    app.config["APP_NAME"] = "Tavola API"
    app.config["DEBUG_MODE"] = config.debug_mode
    app.config["DEBUG"] = config.flask_debug
    app.config["TESTING"] = testing
    app.config["RESTAURANT_NAME"] = config.restaurant_name
    app.config["RESTAURANT_TIMEZONE"] = config.restaurant_timezone
    app.config["APP_URL"] = config.app_url
    app.config["STRIPE_WEBHOOK_SECRET"] = config.stripe_webhook_secret
    if overrides:
        app.config.update(overrides)

    # Database
    init_engine(config, database_url=app.config.get("DATABASE_URL"))
    init_db(Base.metadata)

    # Collaborators
    app.extensions["payment_provider"] = StripeCheckoutProvider(
        config.stripe_api_key, currency=config.stripe_currency
    )
    app.extensions["chat_model_client"] = get_chat_model_client(config)

    # Initialize JWT middleware
    init_jwt_middleware(app)

    # All endpoints -> /api
    app.register_blueprint(api_bp, url_prefix="/api")

    # Error Handlers
    register_error_handlers(app)

    # CORS
    CORS(
        app,
        resources={r"/api/*": {"origins": config.cors_origins, "supports_credentials": True}},
    )

    app.logger.info("Tavola API ready for %s", config.restaurant_name)
    return app
