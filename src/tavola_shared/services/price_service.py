"""
Price calculation and order line assembly.

All money arithmetic uses Decimal with ROUND_HALF_UP; line totals are never
rounded individually, only the subtotal and the final total.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from tavola_shared.constants import DELIVERY_FEE, OrderType

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class OrderLine:
    """A priced order line with name and price copied from the menu."""

    menu_item_id: str
    item_name: str
    item_price: Decimal
    quantity: int
    special_instructions: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.item_price * self.quantity


def round_money(value: Decimal | float | int | str) -> Decimal:
    return Decimal(str(value)).quantize(TWO_PLACES, ROUND_HALF_UP)


def to_cents(amount: Decimal | float | str) -> int:
    """Convert a currency amount to integer minor units."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), ROUND_HALF_UP))


def delivery_fee_for(order_type: str) -> Decimal:
    return DELIVERY_FEE if order_type == OrderType.DELIVERY else Decimal("0.00")


def build_order_lines(
    requested_items: Sequence[Mapping[str, Any]], menu_items: Mapping[str, Any]
) -> list[OrderLine]:
    """
    Pair each requested item with its menu row, preserving request order.

    Args:
        requested_items: Payload items with menu_item_id, quantity and optional
            special_instructions
        menu_items: Menu rows keyed by id; every requested id must be present

    Returns:
        One OrderLine per requested item
    """
    lines = []
    for requested in requested_items:
        menu_item = menu_items[requested["menu_item_id"]]
        lines.append(
            OrderLine(
                menu_item_id=menu_item.id,
                item_name=menu_item.name,
                item_price=Decimal(str(menu_item.price)),
                quantity=int(requested["quantity"]),
                special_instructions=requested.get("special_instructions") or None,
            )
        )
    return lines


def calculate_order_totals(lines: Iterable[OrderLine], order_type: str) -> dict[str, Decimal]:
    """
    Calculate subtotal, delivery fee and total for a set of order lines.

    Returns:
        Dictionary with ``subtotal``, ``delivery_fee`` and ``total``
    """
    raw_subtotal = sum((line.line_total for line in lines), Decimal("0"))
    subtotal = round_money(raw_subtotal)
    delivery_fee = round_money(delivery_fee_for(order_type))
    total = round_money(subtotal + delivery_fee)
    return {"subtotal": subtotal, "delivery_fee": delivery_fee, "total": total}
