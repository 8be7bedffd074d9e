"""
Input validation utilities.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from zoneinfo import ZoneInfo

from tavola_shared.constants import DAY_NAMES
from tavola_shared.error_catalog import ServiceError

POSTAL_PREFIX_PATTERN = re.compile(r"\b(\d{4})\s*[A-Za-z]{0,2}\b")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")
ZONE_PATTERN = re.compile(r"^\d{4}$")


class ValidationError(ServiceError):
    """Raised when validation fails."""


def extract_postal_prefix(address: str) -> str:
    """
    Return the 4-digit prefix of the first postal code found in ``address``.

    Raises:
        ValidationError: UNPROCESSABLE_ADDRESS when no postal code is present
    """
    match = POSTAL_PREFIX_PATTERN.search(address) if isinstance(address, str) else None
    if not match:
        raise ValidationError(
            "UNPROCESSABLE_ADDRESS",
            "Could not find a postal code in the delivery address",
        )
    return match.group(1)


def is_within_zone(prefix: str, zones: Iterable[str] | None) -> bool:
    return prefix in set(zones or ())


def day_name_for(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def is_time_in_range(time_str: str, open_time: str, close_time: str) -> bool:
    """Inclusive comparison of zero-padded "HH:MM" strings."""
    return open_time <= time_str <= close_time


def today_in_timezone(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def is_valid_date_string(value: str) -> bool:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def can_transition(table: Mapping, from_status: str, to_status: str) -> bool:
    """
    Check an adjacency table of allowed status transitions.

    Keys and members may be str enums or plain strings.
    """
    for source, targets in table.items():
        if _value(source) == _value(from_status):
            return _value(to_status) in {_value(target) for target in targets}
    return False


def validate_opening_hours(opening_hours: Mapping | None) -> None:
    """Every present day must use known day names and satisfy open < close."""
    for day, hours in (opening_hours or {}).items():
        if day not in DAY_NAMES:
            raise ValidationError("INVALID_OPENING_HOURS", f"Unknown day name '{day}'")
        open_time = (hours or {}).get("open")
        close_time = (hours or {}).get("close")
        if not (
            isinstance(open_time, str)
            and isinstance(close_time, str)
            and TIME_PATTERN.match(open_time)
            and TIME_PATTERN.match(close_time)
        ):
            raise ValidationError(
                "INVALID_OPENING_HOURS", f"Opening hours for {day} must use HH:MM"
            )
        if not open_time < close_time:
            raise ValidationError(
                "INVALID_OPENING_HOURS",
                f"Opening time {open_time} must be before closing time {close_time} on {day}",
            )


def validate_delivery_zones(zones: Iterable[str] | None) -> None:
    for zone in zones or ():
        if not isinstance(zone, str) or not ZONE_PATTERN.match(zone):
            raise ValidationError(
                "INVALID_DELIVERY_ZONES", f"Delivery zone '{zone}' is not a 4-digit prefix"
            )


def _value(status) -> str:
    return status.value if isinstance(status, Enum) else str(status)
