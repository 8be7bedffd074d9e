"""
Tests for order pricing.
"""

from decimal import Decimal
from types import SimpleNamespace

from tavola_shared.services.price_service import (
    OrderLine,
    build_order_lines,
    calculate_order_totals,
    round_money,
    to_cents,
)


def _line(price, quantity):
    return OrderLine(
        menu_item_id="item", item_name="Item", item_price=Decimal(price), quantity=quantity
    )


class TestTotals:
    def test_pickup_has_no_delivery_fee(self):
        totals = calculate_order_totals([_line("9.50", 2), _line("12.75", 1)], "pickup")
        assert totals == {
            "subtotal": Decimal("31.75"),
            "delivery_fee": Decimal("0.00"),
            "total": Decimal("31.75"),
        }

    def test_delivery_adds_flat_fee(self):
        totals = calculate_order_totals([_line("11.00", 1)], "delivery")
        assert totals["delivery_fee"] == Decimal("2.50")
        assert totals["total"] == Decimal("13.50")

    def test_lines_are_not_rounded_individually(self):
        # 3 x 0.335 = 1.005 -> 1.01; per-line rounding would give 3 x 0.34 = 1.02
        totals = calculate_order_totals([_line("0.335", 3)], "pickup")
        assert totals["subtotal"] == Decimal("1.01")

    def test_total_equals_subtotal_plus_fee(self):
        totals = calculate_order_totals([_line("7.33", 3), _line("4.99", 2)], "delivery")
        assert totals["total"] == totals["subtotal"] + totals["delivery_fee"]


class TestRounding:
    def test_half_up(self):
        assert round_money("2.345") == Decimal("2.35")
        assert round_money("2.344") == Decimal("2.34")

    def test_to_cents(self):
        assert to_cents(Decimal("31.75")) == 3175
        assert to_cents("0.005") == 1
        assert to_cents(13.5) == 1350


class TestOrderLines:
    def test_lines_copy_name_and_price_in_request_order(self):
        menu = {
            "a": SimpleNamespace(id="a", name="Pizza", price=Decimal("9.50")),
            "b": SimpleNamespace(id="b", name="Pasta", price=Decimal("12.75")),
        }
        lines = build_order_lines(
            [
                {"menu_item_id": "b", "quantity": 1},
                {"menu_item_id": "a", "quantity": 2, "special_instructions": "Goed doorbakken"},
            ],
            menu,
        )
        assert [line.item_name for line in lines] == ["Pasta", "Pizza"]
        assert lines[1].special_instructions == "Goed doorbakken"
        assert lines[1].line_total == Decimal("19.00")
