"""
Health check endpoint.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def healthcheck():
    """Basic endpoint to confirm the container is healthy."""
    return jsonify({"status": "ok"}), HTTPStatus.OK
