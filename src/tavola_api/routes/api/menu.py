"""
Menu API - public menu reads and admin menu management.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from tavola_api.request_utils import json_object
from tavola_shared.jwt_middleware import admin_required, get_current_user
from tavola_shared.services import menu_service
from tavola_shared.store import privileged_store, restricted_store

menu_bp = Blueprint("menu", __name__)


@menu_bp.get("/menu")
def get_menu():
    with restricted_store() as store:
        items = menu_service.list_menu(store, category_id=request.args.get("category_id"))
    return jsonify(items), HTTPStatus.OK


@menu_bp.get("/menu/categories")
def get_categories():
    with restricted_store() as store:
        categories = menu_service.list_categories(store)
    return jsonify(categories), HTTPStatus.OK


@menu_bp.post("/menu/categories")
@admin_required
def add_category():
    with privileged_store() as store:
        category = menu_service.create_category(store, get_current_user(), json_object())
    return jsonify(category), HTTPStatus.CREATED


@menu_bp.get("/menu/<item_id>")
def get_menu_item(item_id: str):
    with restricted_store() as store:
        item = menu_service.get_menu_item(store, item_id)
    return jsonify(item), HTTPStatus.OK


@menu_bp.post("/menu")
@admin_required
def add_menu_item():
    with privileged_store() as store:
        item = menu_service.create_menu_item(store, get_current_user(), json_object())
    return jsonify(item), HTTPStatus.CREATED


@menu_bp.patch("/menu/<item_id>")
@admin_required
def edit_menu_item(item_id: str):
    with privileged_store() as store:
        item = menu_service.update_menu_item(store, get_current_user(), item_id, json_object())
    return jsonify(item), HTTPStatus.OK


@menu_bp.delete("/menu/<item_id>")
@admin_required
def remove_menu_item(item_id: str):
    """Logical delete: the item is marked unavailable."""
    with privileged_store() as store:
        result = menu_service.delete_menu_item(store, get_current_user(), item_id)
    return jsonify(result), HTTPStatus.OK
