"""
Reservation engine: validation against opening hours, creation and admin
status management.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from http import HTTPStatus
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from tavola_shared.config import get_setting
from tavola_shared.constants import (
    MAX_PARTY_SIZE,
    MIN_PARTY_SIZE,
    RESERVATION_STATUSES,
    CreatedVia,
    ReservationStatus,
)
from tavola_shared.error_catalog import ServiceError
from tavola_shared.jwt_service import require_admin
from tavola_shared.logging_config import get_logger
from tavola_shared.models import Location, Reservation, utcnow
from tavola_shared.serializers import serialize_reservation
from tavola_shared.store import StoreHandle
from tavola_shared.validation import (
    TIME_PATTERN,
    day_name_for,
    is_time_in_range,
    is_valid_date_string,
    today_in_timezone,
)

logger = get_logger(__name__)

DEFAULT_RESTAURANT_NAME = "Eataliano"
DEFAULT_TIMEZONE = "Europe/Amsterdam"


class ReservationValidationError(ServiceError):
    """Raised when a reservation request breaks a booking rule."""


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _optional_text(payload: Mapping[str, Any], name: str) -> str | None:
    value = payload.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ReservationValidationError(
            "INVALID_PAYLOAD", f"{name} must be a string", {"fields": [name]}
        )
    return value.strip() or None


def _missing_fields(payload: Mapping[str, Any]) -> list[str]:
    missing = []
    if not payload.get("location_id"):
        missing.append("location_id")
    if _is_blank(payload.get("customer_name")):
        missing.append("customer_name")
    if _is_blank(payload.get("customer_phone")):
        missing.append("customer_phone")
    if payload.get("party_size") is None:
        missing.append("party_size")
    if not payload.get("reservation_date"):
        missing.append("reservation_date")
    if not payload.get("reservation_time"):
        missing.append("reservation_time")
    return missing


def _coerce_party_size(value: Any) -> int | None:
    """Whole numbers only; ``True`` is not a party of one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _is_valid_time(value: Any) -> bool:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        return False
    hours, minutes = value.split(":")
    return int(hours) < 24 and int(minutes) < 60


def create_reservation(
    store: StoreHandle, payload: Mapping[str, Any], today: date | None = None
) -> dict[str, Any]:
    """
    Validate and store a reservation.

    Args:
        store: Privileged store handle
        payload: Raw reservation payload
        today: Overrides the restaurant-local current date

    Returns:
        Serialized reservation plus a confirmation ``message``

    Raises:
        ReservationValidationError: First violated rule, in validation order
    """
    session = store.require_privileged("create reservation")

    missing = _missing_fields(payload)
    if missing:
        # The booking form treats an incomplete request as unprocessable, not malformed.
        raise ReservationValidationError(
            "MISSING_FIELDS",
            "Missing required fields",
            {"fields": missing},
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
        )

    party_size = _coerce_party_size(payload["party_size"])
    if party_size is None or not MIN_PARTY_SIZE <= party_size <= MAX_PARTY_SIZE:
        raise ReservationValidationError(
            "INVALID_PARTY_SIZE",
            f"Party size must be a whole number between {MIN_PARTY_SIZE} and {MAX_PARTY_SIZE}",
        )

    reservation_date = payload["reservation_date"]
    if not is_valid_date_string(reservation_date):
        raise ReservationValidationError(
            "INVALID_DATE_FORMAT", "Reservation date must be in YYYY-MM-DD format"
        )

    reservation_time = payload["reservation_time"]
    if not _is_valid_time(reservation_time):
        raise ReservationValidationError(
            "INVALID_TIME_FORMAT", "Reservation time must be in HH:MM format"
        )

    booking_day = date.fromisoformat(reservation_date)
    if today is None:
        today = today_in_timezone(get_setting("RESTAURANT_TIMEZONE", DEFAULT_TIMEZONE))
    if booking_day < today:
        raise ReservationValidationError(
            "DATE_IN_PAST", "Reservation date cannot be in the past"
        )

    created_via = payload.get("created_via") or CreatedVia.CHATBOT.value
    if created_via not in CreatedVia.all_values():
        raise ReservationValidationError(
            "INVALID_CREATED_VIA",
            "Invalid created_via value",
            {"allowed": CreatedVia.all_values()},
        )

    location = session.get(Location, payload["location_id"])
    if location is None:
        raise ReservationValidationError("LOCATION_NOT_FOUND", "Location not found")
    if not location.is_active:
        raise ReservationValidationError(
            "LOCATION_INACTIVE", "This location is currently not active"
        )

    day_name = day_name_for(booking_day)
    day_hours = (location.opening_hours or {}).get(day_name)
    if not day_hours:
        raise ReservationValidationError(
            "LOCATION_CLOSED_THAT_DAY",
            f"The location is closed on {day_name}",
            {"day": day_name},
        )

    if not is_time_in_range(reservation_time, day_hours["open"], day_hours["close"]):
        raise ReservationValidationError(
            "OUTSIDE_OPENING_HOURS",
            f"Reservation time must be between {day_hours['open']} and "
            f"{day_hours['close']} on {day_name}",
            {"day": day_name, "open": day_hours["open"], "close": day_hours["close"]},
        )

    reservation = Reservation(
        location_id=location.id,
        customer_name=str(payload["customer_name"]).strip(),
        customer_email=_optional_text(payload, "customer_email"),
        customer_phone=str(payload["customer_phone"]).strip(),
        party_size=party_size,
        reservation_date=booking_day,
        reservation_time=reservation_time,
        status=ReservationStatus.CONFIRMED.value,
        notes=_optional_text(payload, "notes"),
        created_via=created_via,
    )
    try:
        session.add(reservation)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Failed to insert reservation: %s", exc, exc_info=True)
        raise ReservationValidationError(
            "PERSISTENCE_FAILURE", "Failed to create reservation"
        ) from exc

    restaurant_name = get_setting("RESTAURANT_NAME", DEFAULT_RESTAURANT_NAME)
    logger.info(
        "Reservation %s created for %s guests at %s on %s %s (%s)",
        reservation.id,
        party_size,
        location.name,
        reservation_date,
        reservation_time,
        created_via,
    )
    data = serialize_reservation(reservation)
    data["message"] = (
        f"Reservation confirmed for {party_size} guests at {restaurant_name} "
        f"{location.name} on {reservation_date} at {reservation_time}"
    )
    return data


def update_reservation_status(
    store: StoreHandle, principal: dict | None, reservation_id: str, status: str | None
) -> dict[str, Any]:
    """
    Set a reservation's status.

    Any status may follow any other; only the value itself is checked.
    """
    require_admin(principal)
    session = store.require_privileged("update reservation status")

    if _is_blank(status):
        raise ReservationValidationError(
            "MISSING_FIELDS", "Status is required", {"fields": ["status"]}
        )
    if status not in RESERVATION_STATUSES:
        raise ReservationValidationError(
            "INVALID_STATUS",
            "Invalid status value",
            {"allowed": sorted(RESERVATION_STATUSES)},
        )

    reservation = session.get(Reservation, reservation_id)
    if reservation is None:
        raise ReservationValidationError("RESERVATION_NOT_FOUND", "Reservation not found")

    previous = reservation.status
    reservation.status = status
    reservation.updated_at = utcnow()
    session.commit()

    logger.info("Reservation %s status %s -> %s", reservation_id, previous, status)
    return serialize_reservation(reservation)


def _date_filter(value: str, field: str) -> date:
    if not is_valid_date_string(value):
        raise ReservationValidationError(
            "INVALID_DATE_FORMAT", f"{field} must be in YYYY-MM-DD format"
        )
    return date.fromisoformat(value)


def list_reservations(
    store: StoreHandle,
    principal: dict | None,
    location_id: str | None = None,
    status: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> list[dict[str, Any]]:
    """List reservations in chronological order with optional filters."""
    require_admin(principal)
    session = store.require_privileged("list reservations")

    stmt = select(Reservation)
    if location_id:
        stmt = stmt.where(Reservation.location_id == location_id)
    if status:
        stmt = stmt.where(Reservation.status == status)
    if date_from:
        stmt = stmt.where(Reservation.reservation_date >= _date_filter(date_from, "date_from"))
    if date_to:
        stmt = stmt.where(Reservation.reservation_date <= _date_filter(date_to, "date_to"))

    rows = session.execute(
        stmt.order_by(Reservation.reservation_date.asc(), Reservation.reservation_time.asc())
    ).scalars().all()
    return [serialize_reservation(row) for row in rows]
