"""
Serializers for consistent API responses.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from tavola_shared.models import (
    Location,
    MenuCategory,
    MenuItem,
    Order,
    OrderItem,
    Reservation,
)


def _money(value: Decimal | float | None) -> float:
    if value is None:
        return 0.0
    return float(value)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_location(location: Location) -> dict[str, Any]:
    return {
        "id": location.id,
        "name": location.name,
        "address": location.address,
        "city": location.city,
        "phone": location.phone,
        "email": location.email,
        "opening_hours": location.opening_hours or {},
        "delivery_zones": location.delivery_zones or [],
        "is_active": location.is_active,
    }


def serialize_menu_category(category: MenuCategory) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "sort_order": category.sort_order,
        "is_active": category.is_active,
    }


def serialize_menu_item(item: MenuItem, include_category: bool = False) -> dict[str, Any]:
    """Serialize MenuItem model."""
    data = {
        "id": item.id,
        "category_id": item.category_id,
        "name": item.name,
        "description": item.description,
        "price": _money(item.price),
        "image_url": item.image_url,
        "allergens": item.allergens or [],
        "dietary_labels": item.dietary_labels or [],
        "is_available": item.is_available,
        "is_featured": item.is_featured,
        "sort_order": item.sort_order,
    }
    if include_category:
        data["category"] = (
            {"id": item.category.id, "name": item.category.name} if item.category else None
        )
    return data


def serialize_order_item(order_item: OrderItem) -> dict[str, Any]:
    return {
        "id": order_item.id,
        "order_id": order_item.order_id,
        "menu_item_id": order_item.menu_item_id,
        "item_name": order_item.item_name,
        "item_price": _money(order_item.item_price),
        "quantity": order_item.quantity,
        "special_instructions": order_item.special_instructions,
    }


def serialize_order(order: Order, include_location: bool = False) -> dict[str, Any]:
    """Serialize Order model with its line items in display order."""
    data = {
        "id": order.id,
        "location_id": order.location_id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "order_type": order.order_type,
        "delivery_address": order.delivery_address,
        "status": order.status,
        "subtotal": _money(order.subtotal),
        "delivery_fee": _money(order.delivery_fee),
        "total": _money(order.total),
        "payment_status": order.payment_status,
        "stripe_session_id": order.stripe_session_id,
        "stripe_payment_intent_id": order.stripe_payment_intent_id,
        "notes": order.notes,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
        "order_items": [serialize_order_item(item) for item in order.items],
    }
    if include_location:
        data["location"] = (
            {"id": order.location.id, "name": order.location.name} if order.location else None
        )
    return data


def serialize_reservation(reservation: Reservation, include_location: bool = False) -> dict[str, Any]:
    data = {
        "id": reservation.id,
        "location_id": reservation.location_id,
        "customer_name": reservation.customer_name,
        "customer_email": reservation.customer_email,
        "customer_phone": reservation.customer_phone,
        "party_size": reservation.party_size,
        "reservation_date": _iso(reservation.reservation_date),
        "reservation_time": reservation.reservation_time,
        "status": reservation.status,
        "notes": reservation.notes,
        "created_via": reservation.created_via,
        "created_at": _iso(reservation.created_at),
        "updated_at": _iso(reservation.updated_at),
    }
    if include_location:
        data["location"] = (
            {"id": reservation.location.id, "name": reservation.location.name}
            if reservation.location
            else None
        )
    return data


def error_response(
    error: str, details: dict[str, Any] | None = None, code: str | None = None
) -> dict[str, Any]:
    """Create a standardized error response."""
    response: dict[str, Any] = {"status": "error", "data": None, "error": error}
    if code:
        response["code"] = code
    if details:
        response["details"] = details
    return response
