"""
Centralized catalog of the controlled errors raised by the tavola services.

Every ``ServiceError`` carries one of these codes; the HTTP status of the
response is resolved from the catalog so routes never hardcode it.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

ERROR_CATALOG: dict[str, dict[str, Any]] = {
    # Generic request shape
    "MISSING_FIELDS": {"title": "Missing Required Fields", "http_code": 400},
    "INVALID_PAYLOAD": {"title": "Invalid Request Body", "http_code": 400},
    "UNAUTHORIZED": {"title": "Authentication Required", "http_code": 401},
    # Orders
    "INVALID_ORDER_TYPE": {"title": "Invalid Order Type", "http_code": 400},
    "MISSING_DELIVERY_ADDRESS": {"title": "Delivery Address Required", "http_code": 400},
    "INVALID_ITEMS": {"title": "Invalid Order Items", "http_code": 400},
    "LOCATION_NOT_FOUND": {"title": "Location Not Found", "http_code": 404},
    "LOCATION_INACTIVE": {"title": "Location Inactive", "http_code": 400},
    "UNPROCESSABLE_ADDRESS": {"title": "Unprocessable Address", "http_code": 422},
    "OUTSIDE_DELIVERY_ZONE": {"title": "Outside Delivery Zone", "http_code": 422},
    "MENU_ITEMS_NOT_FOUND": {"title": "Menu Items Not Found", "http_code": 404},
    "MENU_ITEMS_UNAVAILABLE": {"title": "Menu Items Unavailable", "http_code": 400},
    "ORDER_NOT_FOUND": {"title": "Order Not Found", "http_code": 404},
    "INVALID_TRANSITION": {"title": "Invalid Status Transition", "http_code": 400},
    "CONCURRENT_UPDATE": {"title": "Concurrent Update", "http_code": 409},
    "PERSISTENCE_FAILURE": {"title": "Persistence Failure", "http_code": 500},
    # Reservations
    "INVALID_PARTY_SIZE": {"title": "Invalid Party Size", "http_code": 422},
    "INVALID_DATE_FORMAT": {"title": "Invalid Date Format", "http_code": 422},
    "INVALID_TIME_FORMAT": {"title": "Invalid Time Format", "http_code": 422},
    "DATE_IN_PAST": {"title": "Date In The Past", "http_code": 422},
    "INVALID_CREATED_VIA": {"title": "Invalid Origin", "http_code": 422},
    "LOCATION_CLOSED_THAT_DAY": {"title": "Location Closed", "http_code": 422},
    "OUTSIDE_OPENING_HOURS": {"title": "Outside Opening Hours", "http_code": 422},
    "INVALID_STATUS": {"title": "Invalid Status", "http_code": 400},
    "RESERVATION_NOT_FOUND": {"title": "Reservation Not Found", "http_code": 404},
    # Payments
    "PAYMENT_ALREADY_PROCESSED": {"title": "Payment Already Processed", "http_code": 400},
    "PAYMENT_SERVICE_ERROR": {"title": "Payment Failed", "http_code": 402},
    "PAYMENT_SERVICE_UNAVAILABLE": {"title": "Payment Service Unavailable", "http_code": 503},
    "MISSING_SIGNATURE": {"title": "Missing Webhook Signature", "http_code": 400},
    "SIGNATURE_VERIFICATION_FAILED": {"title": "Invalid Webhook Signature", "http_code": 400},
    # Chat
    "INVALID_MESSAGE": {"title": "Invalid Chat Message", "http_code": 400},
    "CHAT_MISCONFIGURED": {"title": "Chat Service Configuration Error", "http_code": 503},
    "CHAT_UPSTREAM_TIMEOUT": {"title": "Chat Service Timeout", "http_code": 504},
    "CHAT_FAILED": {"title": "Chat Failure", "http_code": 500},
    # Menu and locations
    "MENU_ITEM_NOT_FOUND": {"title": "Menu Item Not Found", "http_code": 404},
    "MENU_CATEGORY_NOT_FOUND": {"title": "Menu Category Not Found", "http_code": 404},
    "NO_FIELDS": {"title": "Nothing To Update", "http_code": 400},
    "INVALID_OPENING_HOURS": {"title": "Invalid Opening Hours", "http_code": 400},
    "INVALID_DELIVERY_ZONES": {"title": "Invalid Delivery Zones", "http_code": 400},
}


def http_status_for(code: str) -> HTTPStatus:
    entry = ERROR_CATALOG.get(code)
    if entry is None:
        return HTTPStatus.INTERNAL_SERVER_ERROR
    return HTTPStatus(entry["http_code"])


class ServiceError(Exception):
    """
    Base class for controlled, catalogued service failures.

    Attributes:
        code: Key of ``ERROR_CATALOG``
        message: Human readable description naming the violated rule
        details: Optional structured data for the client
        status: HTTP status resolved from the catalog unless given explicitly
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        status: HTTPStatus | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self.status = status or http_status_for(code)


class AuthorizationError(ServiceError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__("UNAUTHORIZED", message)
