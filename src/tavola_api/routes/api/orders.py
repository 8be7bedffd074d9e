"""
Orders API - public order placement and admin order management.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from tavola_api.request_utils import json_object
from tavola_shared.jwt_middleware import admin_required, get_current_user
from tavola_shared.schemas import UpdateStatusRequest
from tavola_shared.services.order_service import (
    create_order,
    get_order,
    list_orders,
    update_order_status,
)
from tavola_shared.store import privileged_store

orders_bp = Blueprint("orders", __name__)


@orders_bp.post("/orders")
def place_order():
    """Validate, price and store a new pickup or delivery order."""
    payload = json_object()
    with privileged_store() as store:
        order = create_order(store, payload)
    return jsonify(order), HTTPStatus.CREATED


@orders_bp.get("/orders")
@admin_required
def get_orders():
    """
    List orders, newest first.

    Query params: location_id, status, date_from, date_to
    """
    with privileged_store() as store:
        orders = list_orders(
            store,
            get_current_user(),
            location_id=request.args.get("location_id"),
            status=request.args.get("status"),
            date_from=request.args.get("date_from"),
            date_to=request.args.get("date_to"),
        )
    response = jsonify(orders)
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return response


@orders_bp.get("/orders/<order_id>")
@admin_required
def get_order_detail(order_id: str):
    with privileged_store() as store:
        order = get_order(store, get_current_user(), order_id)
    return jsonify(order), HTTPStatus.OK


@orders_bp.patch("/orders/<order_id>")
@admin_required
def change_order_status(order_id: str):
    """Move an order along its status workflow."""
    data = UpdateStatusRequest.model_validate(json_object())
    with privileged_store() as store:
        order = update_order_status(store, get_current_user(), order_id, data.status)
    return jsonify(order), HTTPStatus.OK
