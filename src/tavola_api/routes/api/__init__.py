"""
Tavola API - Modular Blueprint Structure

All endpoints are registered under the main api_bp blueprint, mounted at /api.
"""

from flask import Blueprint

# Create main API blueprint
api_bp = Blueprint("api", __name__)

from tavola_api.routes.api.chat import chat_bp
from tavola_api.routes.api.health import health_bp
from tavola_api.routes.api.locations import locations_bp
from tavola_api.routes.api.menu import menu_bp
from tavola_api.routes.api.orders import orders_bp
from tavola_api.routes.api.payments import payments_bp
from tavola_api.routes.api.reservations import reservations_bp

api_bp.register_blueprint(health_bp)
api_bp.register_blueprint(menu_bp)
api_bp.register_blueprint(locations_bp)
api_bp.register_blueprint(orders_bp)
api_bp.register_blueprint(payments_bp)
api_bp.register_blueprint(reservations_bp)
api_bp.register_blueprint(chat_bp)

__all__ = ["api_bp"]
