"""
Locations API
"""

from http import HTTPStatus

from flask import Blueprint, jsonify

from tavola_api.request_utils import json_object
from tavola_shared.jwt_middleware import admin_required, get_current_user
from tavola_shared.services.location_service import list_locations, upsert_location
from tavola_shared.store import privileged_store, restricted_store

locations_bp = Blueprint("locations", __name__)


@locations_bp.get("/locations")
def get_locations():
    with restricted_store() as store:
        locations = list_locations(store)
    return jsonify(locations), HTTPStatus.OK


@locations_bp.post("/locations")
@admin_required
def save_location():
    """Create a location, or update it when the body carries an existing id."""
    with privileged_store() as store:
        location, created = upsert_location(store, get_current_user(), json_object())
    return jsonify(location), HTTPStatus.CREATED if created else HTTPStatus.OK
