"""
Payment endpoints: hosted checkout and the Stripe webhook.
"""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from tavola_api.request_utils import extension, json_object
from tavola_shared.schemas import CheckoutRequest
from tavola_shared.services.payment_service import create_checkout, handle_webhook_event
from tavola_shared.store import privileged_store

payments_bp = Blueprint("payments", __name__)


@payments_bp.post("/checkout")
def start_checkout():
    """Open a Stripe Checkout session for a pending order."""
    data = CheckoutRequest.model_validate(json_object())
    with privileged_store() as store:
        result = create_checkout(
            store,
            extension("payment_provider"),
            data.order_id,
            current_app.config["APP_URL"],
        )
    return jsonify(result), HTTPStatus.OK


@payments_bp.post("/payment-webhook")
def payment_webhook():
    """
    Stripe webhook receiver.

    The raw body is verified against the stripe-signature header before the
    store is touched. Store failures are not acknowledged: they reach the
    SQLAlchemy error handler as a 500 so Stripe redelivers the event, which
    settles idempotently.
    """
    result = handle_webhook_event(
        extension("payment_provider"),
        request.get_data(),
        request.headers.get("stripe-signature"),
        current_app.config["STRIPE_WEBHOOK_SECRET"],
    )
    return jsonify(result), HTTPStatus.OK
