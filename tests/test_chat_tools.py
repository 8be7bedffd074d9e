"""
Tests for the chat tool registry and dispatcher.
"""

import json
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from conftest import OPEN_DAY
from tavola_shared.chat.config import tool_names
from tavola_shared.chat.tools import TOOL_REGISTRY, execute_tool_call
from tavola_shared.models import Order, Reservation


def _call(store, name, arguments):
    return execute_tool_call(store, name, json.dumps(arguments))


class TestRegistry:
    def test_every_declared_tool_has_a_handler(self):
        assert sorted(TOOL_REGISTRY) == sorted(tool_names())

    def test_unknown_tool(self, store):
        assert _call(store, "delete_everything", {}) == {"error": "Unknown function: delete_everything"}

    def test_malformed_json(self, store):
        assert execute_tool_call(store, "lookup_menu", "{not json") == {
            "error": "Invalid arguments for lookup_menu"
        }

    def test_schema_mismatch(self, store):
        result = _call(store, "create_order", {"customer_name": "Jan", "items": "two pizzas"})
        assert result == {"error": "Invalid arguments for create_order"}

    def test_missing_arguments_default_to_empty_object(self, store):
        result = execute_tool_call(store, "get_location_info", None)
        assert [loc["name"] for loc in result["locations"]] == ["Arnhem"]


class TestLookupMenu:
    def test_search_term(self, store):
        result = _call(store, "lookup_menu", {"search_term": "pizza"})
        assert [item["name"] for item in result["items"]] == ["Pizza Margherita", "Pizza Pepperoni"]

    def test_category_and_dietary_filter(self, store):
        result = _call(store, "lookup_menu", {"category": "pizza", "dietary_filter": "Vegetarisch"})
        assert [item["name"] for item in result["items"]] == ["Pizza Margherita"]
        assert result["items"][0]["category"] == "Pizza"

    def test_unavailable_items_are_hidden(self, store):
        result = _call(store, "lookup_menu", {"search_term": "lasagne"})
        assert result == {"message": "No menu items found matching these criteria."}


class TestCreateReservation:
    def test_books_through_the_chatbot(self, store, seed):
        result = _call(
            store,
            "create_reservation",
            {
                "customer_name": "Sanne",
                "customer_phone": "0611111111",
                "party_size": 2.0,
                "reservation_date": OPEN_DAY,
                "reservation_time": "18:30",
                "location_id": seed.arnhem,
                "unexpected": "ignored",
            },
        )

        assert result["success"] is True
        assert result["party_size"] == 2
        assert result["date"] == OPEN_DAY
        assert result["time"] == "18:30"
        reservation = store.session.get(Reservation, result["reservation_id"])
        assert reservation.created_via == "chatbot"

    def test_rule_violation_is_reported_to_the_model(self, store, seed):
        result = _call(
            store,
            "create_reservation",
            {
                "customer_name": "Sanne",
                "customer_phone": "0611111111",
                "party_size": 25,
                "reservation_date": OPEN_DAY,
                "reservation_time": "18:30",
                "location_id": seed.arnhem,
            },
        )
        assert set(result) == {"error"}
        assert "20" in result["error"]

    def test_partial_booking_reports_every_missing_field(self, store, seed):
        result = _call(
            store, "create_reservation", {"customer_name": "Piet", "location_id": seed.arnhem}
        )

        assert result == {
            "error": "Missing required fields",
            "details": {
                "fields": ["customer_phone", "party_size", "reservation_date", "reservation_time"]
            },
        }
        assert store.session.query(Reservation).count() == 0

    def test_opening_hours_are_passed_back(self, store, seed):
        result = _call(
            store,
            "create_reservation",
            {
                "customer_name": "Sanne",
                "customer_phone": "0611111111",
                "party_size": 2,
                "reservation_date": OPEN_DAY,
                "reservation_time": "11:00",
                "location_id": seed.arnhem,
            },
        )

        assert result["details"] == {"day": "dinsdag", "open": "16:00", "close": "22:00"}


class TestCreateOrder:
    def test_places_order(self, store, seed):
        result = _call(
            store,
            "create_order",
            {
                "customer_name": "Jan",
                "customer_phone": "0612345678",
                "order_type": "pickup",
                "location_id": seed.arnhem,
                "items": [{"menu_item_id": seed.pepperoni, "quantity": 2.0}],
            },
        )

        assert result["success"] is True
        assert result["total"] == 22.0
        assert result["status"] == "pending"
        assert store.session.get(Order, result["order_id"]) is not None

    def test_partial_order_reports_missing_fields(self, store, seed):
        result = _call(store, "create_order", {"customer_name": "Jan", "location_id": seed.arnhem})

        assert result["details"] == {"fields": ["customer_phone", "order_type", "items"]}

    def test_store_failure_is_contained(self, store, seed):
        with patch(
            "tavola_shared.chat.tools.order_service.create_order",
            side_effect=OperationalError("INSERT", {}, Exception()),
        ):
            result = _call(
                store,
                "create_order",
                {
                    "customer_name": "Jan",
                    "customer_phone": "0612345678",
                    "order_type": "pickup",
                    "location_id": seed.arnhem,
                    "items": [{"menu_item_id": seed.pepperoni, "quantity": 1}],
                },
            )
        assert result == {"error": "Could not complete create_order"}


class TestGetLocationInfo:
    def test_by_name(self, store):
        result = _call(store, "get_location_info", {"location_name": "arn"})
        assert result["locations"][0]["phone"] == "026-1234567"
        assert "delivery_zones" not in result["locations"][0]

    def test_inactive_location_is_not_found(self, store):
        assert _call(store, "get_location_info", {"location_name": "Huissen"}) == {
            "message": "No locations found."
        }
