"""
Pytest configuration and shared fixtures.

Every test runs against a fresh in-memory SQLite database seeded with two
locations and a small menu.
"""

import copy
import json
import os
from contextlib import nullcontext
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from tavola_shared.chat.llm_client import ModelReply, ToolCall
from tavola_shared.db import get_session, init_engine, reset_engine
from tavola_shared.jwt_service import create_access_token
from tavola_shared.models import Base, Location, MenuCategory, MenuItem
from tavola_shared.services.payment_providers import (
    CheckoutSession,
    PaymentError,
    PaymentSessionProvider,
    WebhookEvent,
)
from tavola_shared.store import privileged_store, restricted_store

# 2030-01-01 is a Tuesday; Mondays are closed in the seeded opening hours.
TODAY = date(2030, 1, 1)
OPEN_DAY = "2030-01-08"
CLOSED_DAY = "2030-01-07"

EVENING = {"open": "16:00", "close": "22:00"}
OPENING_HOURS = {
    "dinsdag": EVENING,
    "woensdag": EVENING,
    "donderdag": EVENING,
    "vrijdag": {"open": "16:00", "close": "23:00"},
    "zaterdag": {"open": "12:00", "close": "23:00"},
    "zondag": {"open": "12:00", "close": "21:00"},
}


@pytest.fixture(autouse=True)
def database():
    """Fresh in-memory schema per test."""
    reset_engine()
    engine = init_engine(database_url="sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    reset_engine()


@pytest.fixture
def seed(database):
    """Two locations (one inactive) and a menu with one unavailable item."""
    with get_session() as session:
        arnhem = Location(
            name="Arnhem",
            address="Korenmarkt 1, 6811 GW Arnhem",
            city="Arnhem",
            phone="026-1234567",
            email="arnhem@eataliano.test",
            opening_hours=OPENING_HOURS,
            delivery_zones=["6811", "6812", "6821"],
            is_active=True,
        )
        huissen = Location(
            name="Huissen",
            address="Langestraat 10, 6851 AB Huissen",
            city="Huissen",
            phone="026-7654321",
            opening_hours=OPENING_HOURS,
            delivery_zones=["6851"],
            is_active=False,
        )
        pizza = MenuCategory(name="Pizza", sort_order=1)
        pasta = MenuCategory(name="Pasta", sort_order=2)
        session.add_all([arnhem, huissen, pizza, pasta])
        session.flush()

        margherita = MenuItem(
            category_id=pizza.id,
            name="Pizza Margherita",
            description="Tomaat, mozzarella en basilicum",
            price=Decimal("9.50"),
            dietary_labels=["vegetarisch"],
            allergens=["gluten", "lactose"],
            sort_order=1,
        )
        pepperoni = MenuItem(
            category_id=pizza.id,
            name="Pizza Pepperoni",
            description="Pittige salami",
            price=Decimal("11.00"),
            sort_order=2,
        )
        carbonara = MenuItem(
            category_id=pasta.id,
            name="Spaghetti Carbonara",
            description="Spek, ei en pecorino",
            price=Decimal("12.75"),
            sort_order=1,
        )
        lasagne = MenuItem(
            category_id=pasta.id,
            name="Lasagne",
            price=Decimal("13.50"),
            is_available=False,
            sort_order=2,
        )
        session.add_all([margherita, pepperoni, carbonara, lasagne])
        session.flush()

        ids = SimpleNamespace(
            arnhem=arnhem.id,
            huissen=huissen.id,
            pizza=pizza.id,
            pasta=pasta.id,
            margherita=margherita.id,
            pepperoni=pepperoni.id,
            carbonara=carbonara.id,
            lasagne=lasagne.id,
        )
    return ids


@pytest.fixture
def store(seed):
    with privileged_store() as handle:
        yield handle


@pytest.fixture
def public_store(seed):
    with restricted_store() as handle:
        yield handle


@pytest.fixture
def store_factory(store):
    """Hands the test's own store to code that opens one itself."""
    return lambda: nullcontext(store)


@pytest.fixture
def admin():
    return {"sub": "admin-user-id", "role": "authenticated", "email": "admin@eataliano.test"}


@pytest.fixture
def order_payload(seed):
    def build(**overrides):
        payload = {
            "location_id": seed.arnhem,
            "customer_name": "Jan Jansen",
            "customer_phone": "0612345678",
            "order_type": "pickup",
            "items": [
                {"menu_item_id": seed.margherita, "quantity": 2},
                {"menu_item_id": seed.carbonara, "quantity": 1, "special_instructions": "Extra kaas"},
            ],
        }
        payload.update(overrides)
        return payload

    return build


@pytest.fixture
def reservation_payload(seed):
    def build(**overrides):
        payload = {
            "location_id": seed.arnhem,
            "customer_name": "Piet de Vries",
            "customer_phone": "0687654321",
            "party_size": 4,
            "reservation_date": OPEN_DAY,
            "reservation_time": "19:00",
        }
        payload.update(overrides)
        return payload

    return build


class FakePaymentProvider(PaymentSessionProvider):
    """Records checkout requests; accepts the signature "valid" only."""

    def __init__(self):
        self.sessions = []
        self.verified = []

    def validate_configuration(self) -> bool:
        return True

    def create_session(self, amount_cents, name, description, metadata, success_url, cancel_url):
        self.sessions.append(
            {
                "amount_cents": amount_cents,
                "name": name,
                "description": description,
                "metadata": metadata,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        return CheckoutSession(
            session_id="cs_test_123", url="https://checkout.stripe.test/cs_test_123"
        )

    def verify_and_parse_event(self, raw_body, signature, secret):
        self.verified.append(signature)
        if signature != "valid":
            raise PaymentError(
                "SIGNATURE_VERIFICATION_FAILED",
                "Webhook signature verification failed: No signatures found matching the expected signature",
            )
        event = json.loads(raw_body)
        return WebhookEvent(
            type=event["type"], data_object=event["data"]["object"], event_id=event.get("id")
        )


@pytest.fixture
def payment_provider():
    return FakePaymentProvider()


class ScriptedModelClient:
    """Chat model double that replays a fixed list of replies."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, messages, tools):
        self.calls.append({"messages": copy.deepcopy(messages), "tools": tools})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def text_reply(content):
    return ModelReply(content=content)


def tool_reply(*calls):
    """Build a reply requesting ``(name, arguments)`` tool calls."""
    return ModelReply(
        content=None,
        tool_calls=[
            ToolCall(id=f"call_{index}", name=name, arguments=json.dumps(arguments))
            for index, (name, arguments) in enumerate(calls, start=1)
        ],
    )


@pytest.fixture
def app(seed, payment_provider):
    from tavola_api.app import create_app

    app = create_app(
        testing=True,
        overrides={
            "APP_URL": "https://eataliano.test",
            "STRIPE_WEBHOOK_SECRET": "whsec_test",
            "RESTAURANT_NAME": "Eataliano",
        },
    )
    app.extensions["payment_provider"] = payment_provider
    app.extensions["chat_model_client"] = ScriptedModelClient([])
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(app):
    with app.app_context():
        token = create_access_token("admin-user-id", role="authenticated")
    return {"Authorization": f"Bearer {token}"}
