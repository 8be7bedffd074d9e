"""
Application constants and enums.
"""

from decimal import Decimal
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class ReservationStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class CreatedVia(str, Enum):
    CHATBOT = "chatbot"
    ADMIN = "admin"

    @classmethod
    def all_values(cls) -> list[str]:
        return [member.value for member in cls]


class Roles(str, Enum):
    ADMIN = "admin"
    AUTHENTICATED = "authenticated"
    SERVICE_ROLE = "service_role"

    @classmethod
    def is_admin(cls, role: str | None) -> bool:
        return role in {member.value for member in cls}


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset(
        {OrderStatus.COMPLETED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}
    ),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Reservations have no from -> to restrictions, only a closed set of values.
RESERVATION_STATUSES = {status.value for status in ReservationStatus}

DELIVERY_FEE = Decimal("2.50")

MIN_PARTY_SIZE = 1
MAX_PARTY_SIZE = 20

# Keys of Location.opening_hours, indexed by date.weekday() (0 = Monday).
DAY_NAMES = (
    "maandag",
    "dinsdag",
    "woensdag",
    "donderdag",
    "vrijdag",
    "zaterdag",
    "zondag",
)

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"
