"""
Reservations API
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from tavola_api.request_utils import json_object
from tavola_shared.jwt_middleware import admin_required, get_current_user
from tavola_shared.schemas import UpdateStatusRequest
from tavola_shared.services.reservation_service import (
    create_reservation,
    list_reservations,
    update_reservation_status,
)
from tavola_shared.store import privileged_store

reservations_bp = Blueprint("reservations", __name__)


@reservations_bp.post("/reservations")
def book_table():
    with privileged_store() as store:
        reservation = create_reservation(store, json_object())
    return jsonify(reservation), HTTPStatus.CREATED


@reservations_bp.get("/reservations")
@admin_required
def get_reservations():
    with privileged_store() as store:
        reservations = list_reservations(
            store,
            get_current_user(),
            location_id=request.args.get("location_id"),
            status=request.args.get("status"),
            date_from=request.args.get("date_from"),
            date_to=request.args.get("date_to"),
        )
    return jsonify(reservations), HTTPStatus.OK


@reservations_bp.patch("/reservations/<reservation_id>")
@admin_required
def change_reservation_status(reservation_id: str):
    data = UpdateStatusRequest.model_validate(json_object())
    with privileged_store() as store:
        reservation = update_reservation_status(
            store, get_current_user(), reservation_id, data.status
        )
    return jsonify(reservation), HTTPStatus.OK
