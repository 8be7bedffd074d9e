"""
Tests for order creation, admin reads and status updates.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from tavola_shared.error_catalog import AuthorizationError
from tavola_shared.models import MenuItem, Order, OrderItem
from tavola_shared.services import order_service
from tavola_shared.services.order_service import (
    OrderValidationError,
    create_order,
    get_order,
    list_orders,
    update_order_status,
)
from tavola_shared.services.order_state_machine import OrderStateError
from tavola_shared.store import StorePrivilegeError


def _count(session, model):
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def _error_code(store, payload):
    with pytest.raises(OrderValidationError) as exc:
        create_order(store, payload)
    return exc.value


class TestCreateOrder:
    def test_pickup_order_is_priced_and_stored(self, store, order_payload):
        order = create_order(store, order_payload())

        assert order["status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["subtotal"] == 31.75
        assert order["delivery_fee"] == 0.0
        assert order["total"] == 31.75
        assert order["delivery_address"] is None
        assert [item["item_name"] for item in order["order_items"]] == [
            "Pizza Margherita",
            "Spaghetti Carbonara",
        ]
        assert order["order_items"][1]["special_instructions"] == "Extra kaas"
        assert _count(store.session, OrderItem) == 2

    def test_delivery_order_inside_zone_adds_fee(self, store, order_payload):
        order = create_order(
            store,
            order_payload(order_type="delivery", delivery_address="Steenstraat 5, 6812 AB Arnhem"),
        )
        assert order["delivery_fee"] == 2.5
        assert order["total"] == 34.25
        assert order["delivery_address"] == "Steenstraat 5, 6812 AB Arnhem"

    def test_line_items_snapshot_the_menu_price(self, store, seed, order_payload):
        order = create_order(store, order_payload())
        store.session.get(MenuItem, seed.margherita).price = Decimal("15.00")
        store.session.commit()

        stored = store.session.execute(
            select(OrderItem).where(OrderItem.order_id == order["id"], OrderItem.position == 0)
        ).scalar_one()
        assert stored.item_price == Decimal("9.50")

    def test_requires_privileged_store(self, public_store, order_payload):
        with pytest.raises(StorePrivilegeError):
            create_order(public_store, order_payload())


class TestCreateOrderValidation:
    def test_missing_fields(self, store, order_payload):
        error = _error_code(store, order_payload(customer_phone=None, items=None))
        assert error.code == "MISSING_FIELDS"
        assert error.details == {"fields": ["customer_phone", "items"]}

    def test_blank_name_counts_as_missing(self, store, order_payload):
        assert _error_code(store, order_payload(customer_name="   ")).code == "MISSING_FIELDS"

    def test_invalid_order_type(self, store, order_payload):
        assert _error_code(store, order_payload(order_type="dine_in")).code == "INVALID_ORDER_TYPE"

    def test_delivery_needs_address(self, store, order_payload):
        error = _error_code(store, order_payload(order_type="delivery"))
        assert error.code == "MISSING_DELIVERY_ADDRESS"

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [{"menu_item_id": "x", "quantity": 0}],
            [{"menu_item_id": "x", "quantity": 1.5}],
            [{"menu_item_id": "x", "quantity": True}],
            [{"quantity": 1}],
            ["x"],
        ],
    )
    def test_malformed_items(self, store, order_payload, items):
        assert _error_code(store, order_payload(items=items)).code == "INVALID_ITEMS"

    def test_unknown_location(self, store, order_payload):
        assert _error_code(store, order_payload(location_id="nope")).code == "LOCATION_NOT_FOUND"

    def test_inactive_location(self, store, seed, order_payload):
        error = _error_code(store, order_payload(location_id=seed.huissen))
        assert error.code == "LOCATION_INACTIVE"

    def test_address_without_postal_code(self, store, order_payload):
        error = _error_code(
            store, order_payload(order_type="delivery", delivery_address="Ergens in Arnhem")
        )
        assert error.code == "UNPROCESSABLE_ADDRESS"
        assert error.status == 422

    def test_numeric_address_is_unprocessable(self, store, order_payload):
        error = _error_code(store, order_payload(order_type="delivery", delivery_address=6811))
        assert error.code == "UNPROCESSABLE_ADDRESS"
        assert store.session.query(Order).count() == 0

    def test_outside_delivery_zone(self, store, order_payload):
        error = _error_code(
            store, order_payload(order_type="delivery", delivery_address="Dam 1, 1012 JS Amsterdam")
        )
        assert error.code == "OUTSIDE_DELIVERY_ZONE"
        assert error.details == {"postal_prefix": "1012"}
        assert "1012" in error.message

    def test_unknown_menu_items(self, store, order_payload):
        error = _error_code(
            store, order_payload(items=[{"menu_item_id": "ghost", "quantity": 1}])
        )
        assert error.code == "MENU_ITEMS_NOT_FOUND"
        assert error.details == {"missing_ids": ["ghost"]}

    def test_unavailable_menu_items(self, store, seed, order_payload):
        error = _error_code(
            store, order_payload(items=[{"menu_item_id": seed.lasagne, "quantity": 1}])
        )
        assert error.code == "MENU_ITEMS_UNAVAILABLE"
        assert error.details == {"names": ["Lasagne"]}

    def test_nothing_is_written_on_validation_failure(self, store, order_payload):
        _error_code(store, order_payload(order_type="dine_in"))
        assert _count(store.session, Order) == 0


class TestCompensation:
    def test_order_row_is_removed_when_items_fail(self, store, order_payload):
        with patch.object(
            order_service,
            "_insert_order_items",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        ):
            error = _error_code(store, order_payload())

        assert error.code == "PERSISTENCE_FAILURE"
        assert error.status == 500
        assert _count(store.session, Order) == 0
        assert _count(store.session, OrderItem) == 0

    def test_failed_cleanup_is_reported(self, store, order_payload):
        failure = OperationalError("DELETE", {}, Exception("connection lost"))
        with patch.object(
            order_service, "_insert_order_items", side_effect=OperationalError("INSERT", {}, Exception())
        ), patch.object(order_service, "_delete_order_rows", side_effect=failure) as cleanup:
            error = _error_code(store, order_payload())

        assert cleanup.call_count == order_service.COMPENSATION_ATTEMPTS
        assert error.code == "PERSISTENCE_FAILURE"
        assert error.details["cleanup_failed"] is True
        assert _count(store.session, Order) == 1


class TestOrderAdmin:
    def test_status_update_follows_workflow(self, store, admin, order_payload):
        order = create_order(store, order_payload(order_type="delivery", delivery_address="6811 AA"))
        for status in ("confirmed", "preparing", "ready", "out_for_delivery", "completed"):
            order = update_order_status(store, admin, order["id"], status)
            assert order["status"] == status

    def test_invalid_transition_writes_nothing(self, store, admin, order_payload):
        order = create_order(store, order_payload())
        with pytest.raises(OrderStateError):
            update_order_status(store, admin, order["id"], "completed")
        assert store.session.get(Order, order["id"], populate_existing=True).status == "pending"

    def test_pickup_cannot_go_out_for_delivery(self, store, admin, order_payload):
        order = create_order(store, order_payload())
        for status in ("confirmed", "preparing", "ready"):
            update_order_status(store, admin, order["id"], status)
        with pytest.raises(OrderStateError):
            update_order_status(store, admin, order["id"], "out_for_delivery")

    def test_lost_race_is_a_concurrent_update(self, store, admin, order_payload):
        order = create_order(store, order_payload())
        real_execute = store.session.execute

        def execute(statement, *args, **kwargs):
            result = real_execute(statement, *args, **kwargs)
            if getattr(statement, "is_select", False) and not getattr(execute, "raced", False):
                # Another admin cancels the order right after our read.
                execute.raced = True
                real_execute(
                    update(Order)
                    .where(Order.id == order["id"])
                    .values(status="cancelled")
                )
            return result

        with patch.object(store.session, "execute", side_effect=execute):
            with pytest.raises(OrderValidationError) as exc:
                update_order_status(store, admin, order["id"], "confirmed")

        assert exc.value.code == "CONCURRENT_UPDATE"
        assert exc.value.status == 409

    def test_missing_status_and_unknown_order(self, store, admin):
        with pytest.raises(OrderValidationError) as exc:
            update_order_status(store, admin, "whatever", "")
        assert exc.value.code == "MISSING_FIELDS"
        with pytest.raises(OrderValidationError) as exc:
            update_order_status(store, admin, "whatever", "confirmed")
        assert exc.value.code == "ORDER_NOT_FOUND"

    def test_admin_only(self, store, order_payload):
        order = create_order(store, order_payload())
        with pytest.raises(AuthorizationError):
            update_order_status(store, None, order["id"], "confirmed")
        with pytest.raises(AuthorizationError):
            get_order(store, {"sub": "x", "role": "anon"}, order["id"])

    def test_get_and_list_orders(self, store, seed, admin, order_payload):
        first = create_order(store, order_payload())
        second = create_order(store, order_payload(customer_name="Klaas"))
        update_order_status(store, admin, second["id"], "confirmed")

        detail = get_order(store, admin, first["id"])
        assert detail["location"] == {"id": seed.arnhem, "name": "Arnhem"}
        assert len(detail["order_items"]) == 2

        assert [o["id"] for o in list_orders(store, admin, status="confirmed")] == [second["id"]]
        assert len(list_orders(store, admin, location_id=seed.arnhem)) == 2
        assert list_orders(store, admin, location_id=seed.huissen) == []

    def test_list_orders_date_range_is_inclusive(self, store, admin, order_payload):
        order = create_order(store, order_payload())
        day = order["created_at"][:10]
        assert len(list_orders(store, admin, date_from=day, date_to=day)) == 1
        assert list_orders(store, admin, date_to="2000-01-01") == []
