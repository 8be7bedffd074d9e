"""
Domain logic around orders: creation, admin reads and status updates.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from tavola_shared.constants import OrderStatus, OrderType, PaymentStatus
from tavola_shared.error_catalog import ServiceError
from tavola_shared.jwt_service import require_admin
from tavola_shared.logging_config import get_logger
from tavola_shared.models import Location, MenuItem, Order, OrderItem, utcnow
from tavola_shared.serializers import serialize_order
from tavola_shared.services.order_state_machine import order_state_machine
from tavola_shared.services.price_service import (
    OrderLine,
    build_order_lines,
    calculate_order_totals,
)
from tavola_shared.store import StoreHandle
from tavola_shared.validation import (
    ValidationError,
    extract_postal_prefix,
    is_valid_date_string,
    is_within_zone,
)

logger = get_logger(__name__)

REQUIRED_ORDER_FIELDS = ("location_id", "customer_name", "customer_phone", "order_type", "items")
COMPENSATION_ATTEMPTS = 2


class OrderValidationError(ServiceError):
    """Raised when the incoming order payload or its persistence fails."""


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_order_payload(payload: Mapping[str, Any]) -> None:
    """
    Validate the shape of an order payload, stopping at the first failure.

    Raises:
        OrderValidationError: MISSING_FIELDS, INVALID_ORDER_TYPE,
            MISSING_DELIVERY_ADDRESS or INVALID_ITEMS
    """
    missing = [name for name in REQUIRED_ORDER_FIELDS if payload.get(name) in (None, "")]
    if missing:
        raise OrderValidationError(
            "MISSING_FIELDS",
            "Missing required fields: " + ", ".join(REQUIRED_ORDER_FIELDS),
            {"fields": missing},
        )

    blank = [name for name in ("customer_name", "customer_phone") if _is_blank(payload.get(name))]
    if blank:
        raise OrderValidationError(
            "MISSING_FIELDS",
            "customer_name and customer_phone must not be empty",
            {"fields": blank},
        )

    order_type = payload.get("order_type")
    if order_type not in {t.value for t in OrderType}:
        raise OrderValidationError(
            "INVALID_ORDER_TYPE", "order_type must be 'pickup' or 'delivery'"
        )

    if order_type == OrderType.DELIVERY and _is_blank(payload.get("delivery_address")):
        raise OrderValidationError(
            "MISSING_DELIVERY_ADDRESS", "delivery_address is required for delivery orders"
        )

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise OrderValidationError("INVALID_ITEMS", "items must be a non-empty array")

    for item in items:
        if (
            not isinstance(item, Mapping)
            or _is_blank(item.get("menu_item_id"))
            or not _is_positive_int(item.get("quantity"))
        ):
            raise OrderValidationError(
                "INVALID_ITEMS", "Each item must have a valid menu_item_id and quantity > 0"
            )


def _load_location(session, location_id: str) -> Location:
    location = session.get(Location, location_id)
    if location is None:
        raise OrderValidationError("LOCATION_NOT_FOUND", "Location not found")
    if not location.is_active:
        raise OrderValidationError("LOCATION_INACTIVE", "Location is not active")
    return location


def _check_delivery_zone(location: Location, delivery_address: str) -> str:
    try:
        prefix = extract_postal_prefix(delivery_address)
    except ValidationError as exc:
        raise OrderValidationError(
            "UNPROCESSABLE_ADDRESS", "Could not determine postal code from delivery address"
        ) from exc

    if not is_within_zone(prefix, location.delivery_zones):
        raise OrderValidationError(
            "OUTSIDE_DELIVERY_ZONE",
            "Delivery address is outside the delivery zone for this location. "
            f"Postal code {prefix} is not serviced.",
            {"postal_prefix": prefix},
        )
    return prefix


def _load_menu_items(session, items: list[Mapping[str, Any]]) -> dict[str, MenuItem]:
    requested_ids = list(dict.fromkeys(str(item["menu_item_id"]) for item in items))
    rows = session.execute(select(MenuItem).where(MenuItem.id.in_(requested_ids))).scalars().all()
    found = {row.id: row for row in rows}

    missing_ids = [item_id for item_id in requested_ids if item_id not in found]
    if missing_ids:
        raise OrderValidationError(
            "MENU_ITEMS_NOT_FOUND",
            f"Menu items not found: {', '.join(missing_ids)}",
            {"missing_ids": missing_ids},
        )

    unavailable = [found[item_id].name for item_id in requested_ids if not found[item_id].is_available]
    if unavailable:
        raise OrderValidationError(
            "MENU_ITEMS_UNAVAILABLE",
            f"Menu items not available: {', '.join(unavailable)}",
            {"names": unavailable},
        )
    return found


def _insert_order_items(session, order_id: str, lines: list[OrderLine]) -> None:
    session.add_all(
        OrderItem(
            order_id=order_id,
            menu_item_id=line.menu_item_id,
            item_name=line.item_name,
            item_price=line.item_price,
            quantity=line.quantity,
            special_instructions=line.special_instructions,
            position=position,
        )
        for position, line in enumerate(lines)
    )
    session.flush()


def _delete_order_rows(session, order_id: str) -> None:
    session.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
    session.execute(delete(Order).where(Order.id == order_id))
    session.commit()


def _compensate_failed_order(session, order_id: str) -> None:
    """
    Remove an order whose items could not be stored.

    Retried once; if the cleanup still fails the caller gets a
    PERSISTENCE_FAILURE that names the orphaned order.
    """
    for attempt in range(1, COMPENSATION_ATTEMPTS + 1):
        try:
            _delete_order_rows(session, order_id)
            logger.warning("Removed order %s after failed item insert", order_id)
            return
        except SQLAlchemyError:
            session.rollback()
            logger.error(
                "Cleanup of order %s failed (attempt %s/%s)",
                order_id,
                attempt,
                COMPENSATION_ATTEMPTS,
                exc_info=True,
            )

    raise OrderValidationError(
        "PERSISTENCE_FAILURE",
        "Failed to create order items and the partial order could not be removed",
        {"order_id": order_id, "cleanup_failed": True},
    )


def create_order(store: StoreHandle, payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate, price and persist a new order with its line items.

    The order row is committed first and the items second; if the items cannot
    be stored the order row is deleted again before the failure is reported.

    Args:
        store: Privileged store handle
        payload: Raw order payload

    Returns:
        Serialized order including ``order_items``

    Raises:
        OrderValidationError: On any validation or persistence failure
    """
    session = store.require_privileged("create order")
    validate_order_payload(payload)

    order_type = payload["order_type"]
    location = _load_location(session, payload["location_id"])
    if order_type == OrderType.DELIVERY:
        _check_delivery_zone(location, payload["delivery_address"])

    menu_items = _load_menu_items(session, payload["items"])
    lines = build_order_lines(
        [{**item, "menu_item_id": str(item["menu_item_id"])} for item in payload["items"]],
        menu_items,
    )
    totals = calculate_order_totals(lines, order_type)

    order = Order(
        location_id=location.id,
        customer_name=str(payload["customer_name"]).strip(),
        customer_email=payload.get("customer_email") or None,
        customer_phone=str(payload["customer_phone"]).strip(),
        order_type=order_type,
        delivery_address=payload.get("delivery_address") if order_type == OrderType.DELIVERY else None,
        status=OrderStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        notes=payload.get("notes") or None,
        **totals,
    )

    try:
        session.add(order)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Failed to insert order: %s", exc, exc_info=True)
        raise OrderValidationError("PERSISTENCE_FAILURE", "Failed to create order") from exc

    order_id = order.id
    try:
        _insert_order_items(session, order_id, lines)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Failed to insert items for order %s: %s", order_id, exc, exc_info=True)
        _compensate_failed_order(session, order_id)
        raise OrderValidationError(
            "PERSISTENCE_FAILURE", "Failed to create order items", {"order_id": order_id}
        ) from exc

    logger.info(
        "Order %s created (%s, %s items, total %s)",
        order_id,
        order_type,
        len(lines),
        totals["total"],
    )
    return serialize_order(_fetch_order(session, order_id))


def _fetch_order(session, order_id: str) -> Order:
    order = session.execute(
        select(Order)
        .options(selectinload(Order.items), selectinload(Order.location))
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if order is None:
        raise OrderValidationError("ORDER_NOT_FOUND", "Order not found")
    return order


def get_order(store: StoreHandle, principal: dict | None, order_id: str) -> dict[str, Any]:
    require_admin(principal)
    session = store.require_privileged("read order")
    return serialize_order(_fetch_order(session, order_id), include_location=True)


def _datetime_bound(value: str, field: str, upper: bool) -> datetime:
    """
    Turn a filter value into a created_at bound.

    A bare date as upper bound covers the whole day; full ISO timestamps are
    used as-is.
    """
    if is_valid_date_string(value):
        day = date.fromisoformat(value)
        if upper:
            return datetime.combine(day + timedelta(days=1), time.min) - timedelta(microseconds=1)
        return datetime.combine(day, time.min)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(
            "INVALID_DATE_FORMAT", f"{field} must be an ISO date or timestamp"
        ) from exc
    return parsed.replace(tzinfo=None)


def list_orders(
    store: StoreHandle,
    principal: dict | None,
    location_id: str | None = None,
    status: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[dict[str, Any]]:
    """
    List orders newest first for the admin back office.

    Args:
        location_id: Only orders of this location
        status: Only orders in this status
        date_from: Inclusive lower bound on created_at
        date_to: Inclusive upper bound on created_at
    """
    require_admin(principal)
    session = store.require_privileged("list orders")

    stmt = select(Order).options(selectinload(Order.items), selectinload(Order.location))
    if location_id:
        stmt = stmt.where(Order.location_id == location_id)
    if status:
        stmt = stmt.where(Order.status == status)
    if date_from:
        stmt = stmt.where(Order.created_at >= _datetime_bound(date_from, "date_from", upper=False))
    if date_to:
        stmt = stmt.where(Order.created_at <= _datetime_bound(date_to, "date_to", upper=True))

    orders = session.execute(stmt.order_by(Order.created_at.desc())).scalars().all()
    logger.info("Listed %s orders", len(orders))
    return [serialize_order(order, include_location=True) for order in orders]


def update_order_status(
    store: StoreHandle, principal: dict | None, order_id: str, new_status: str | None
) -> dict[str, Any]:
    """
    Move an order to ``new_status`` if the state machine allows it.

    The write is a compare-and-swap on the status that was read, so two admins
    racing on the same order cannot both apply a transition from the same
    state.

    Raises:
        AuthorizationError: Principal is not an admin
        OrderValidationError: MISSING_FIELDS, ORDER_NOT_FOUND or CONCURRENT_UPDATE
        OrderStateError: INVALID_TRANSITION
    """
    require_admin(principal)
    session = store.require_privileged("update order status")

    if _is_blank(new_status):
        raise OrderValidationError("MISSING_FIELDS", "Status is required", {"fields": ["status"]})

    current = session.execute(
        select(Order.status, Order.order_type).where(Order.id == order_id)
    ).one_or_none()
    if current is None:
        raise OrderValidationError("ORDER_NOT_FOUND", "Order not found")

    current_status, order_type = current
    order_state_machine.validate_transition(current_status, new_status, order_type)

    result = session.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == current_status)
        .values(status=new_status, updated_at=utcnow())
    )
    if result.rowcount != 1:
        session.rollback()
        raise OrderValidationError(
            "CONCURRENT_UPDATE",
            f"Order {order_id} changed status while it was being updated; reload and retry",
            {"expected_status": current_status},
        )
    session.commit()

    logger.info("Order %s status %s -> %s", order_id, current_status, new_status)
    return serialize_order(_fetch_order(session, order_id))
