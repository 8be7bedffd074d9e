"""
Payment settlement: hosted checkout creation and the provider webhook.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError

from tavola_shared.config import get_setting
from tavola_shared.constants import (
    CHECKOUT_COMPLETED_EVENT,
    OrderStatus,
    OrderType,
    PaymentStatus,
)
from tavola_shared.logging_config import get_logger
from tavola_shared.models import Order, OrderItem, utcnow
from tavola_shared.services.payment_providers import PaymentError, PaymentSessionProvider
from tavola_shared.services.price_service import to_cents
from tavola_shared.store import StoreHandle, privileged_store

logger = get_logger(__name__)

ACK = {"received": True}


def _payment_intent_id(session_object: dict[str, Any]) -> str | None:
    """The intent arrives as a bare id or, when expanded, as an object."""
    intent = session_object.get("payment_intent")
    if isinstance(intent, str):
        return intent
    if isinstance(intent, dict):
        return intent.get("id")
    return None


def create_checkout(
    store: StoreHandle,
    provider: PaymentSessionProvider,
    order_id: str | None,
    app_url: str,
) -> dict[str, Any]:
    """
    Open a hosted checkout session for a pending order.

    Args:
        store: Privileged store handle
        provider: Payment session collaborator
        order_id: Order to charge
        app_url: Public base URL for the success and cancel redirects

    Returns:
        Dict with ``session_id`` and ``url``

    Raises:
        PaymentError: MISSING_FIELDS, ORDER_NOT_FOUND, PAYMENT_ALREADY_PROCESSED
            or a provider failure
    """
    session = store.require_privileged("create checkout")

    if not order_id:
        raise PaymentError("MISSING_FIELDS", "order_id is required", {"fields": ["order_id"]})

    order = session.get(Order, order_id)
    if order is None:
        raise PaymentError("ORDER_NOT_FOUND", "Order not found")

    if order.payment_status != PaymentStatus.PENDING:
        raise PaymentError(
            "PAYMENT_ALREADY_PROCESSED",
            f"Order payment is already '{order.payment_status}'",
            {"payment_status": order.payment_status},
        )

    item_count = session.execute(
        select(OrderItem.id).where(OrderItem.order_id == order.id)
    ).all()
    fulfilment = "Delivery" if order.order_type == OrderType.DELIVERY else "Pickup"
    restaurant_name = get_setting("RESTAURANT_NAME", "Eataliano")

    checkout = provider.create_session(
        amount_cents=to_cents(order.total),
        name=f"{restaurant_name} order #{order.id[:8]}",
        description=f"{len(item_count)} item(s) - {fulfilment}",
        metadata={"order_id": order.id},
        success_url=f"{app_url}/order/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{app_url}/order/cancel",
    )

    # The webhook keys on metadata.order_id, so a lost session id only costs traceability.
    try:
        order.stripe_session_id = checkout.session_id
        order.updated_at = utcnow()
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.error(
            "Could not store checkout session %s on order %s",
            checkout.session_id,
            order_id,
            exc_info=True,
        )

    logger.info("Checkout session %s opened for order %s", checkout.session_id, order_id)
    return {"session_id": checkout.session_id, "url": checkout.url}


def handle_webhook_event(
    provider: PaymentSessionProvider,
    raw_body: bytes,
    signature: str | None,
    secret: str,
    store_factory: Callable[[], AbstractContextManager[StoreHandle]] = privileged_store,
) -> dict[str, bool]:
    """
    Reconcile an order from a verified provider event.

    The signature is verified before the store is opened. Redelivered events
    are absorbed by re-reading payment_status and by making the update itself
    conditional on the order not being paid yet. Payment is always recorded,
    but only a pending order is moved to confirmed.

    Returns:
        ``{"received": True}`` for every outcome except the two signature
        failures

    Raises:
        PaymentError: MISSING_SIGNATURE or SIGNATURE_VERIFICATION_FAILED
    """
    if not signature:
        raise PaymentError("MISSING_SIGNATURE", "Missing stripe-signature header")

    event = provider.verify_and_parse_event(raw_body, signature, secret)

    if event.type != CHECKOUT_COMPLETED_EVENT:
        logger.debug("Ignoring webhook event %s", event.type)
        return ACK

    order_id = (event.data_object.get("metadata") or {}).get("order_id")
    if not order_id:
        logger.warning("Checkout event %s carries no order_id", event.event_id)
        return ACK

    with store_factory() as store:
        session = store.require_privileged("settle payment")

        current = session.execute(
            select(Order.payment_status, Order.status).where(Order.id == order_id)
        ).one_or_none()
        if current is None:
            logger.warning("Checkout event %s references unknown order %s", event.event_id, order_id)
            return ACK
        payment_status, status = current
        if payment_status == PaymentStatus.PAID:
            logger.info("Order %s already paid, ignoring replayed event", order_id)
            return ACK

        # Only a pending order moves to confirmed; cancelled and later states keep their status.
        result = session.execute(
            update(Order)
            .where(Order.id == order_id, Order.payment_status != PaymentStatus.PAID.value)
            .values(
                payment_status=PaymentStatus.PAID.value,
                status=case(
                    (Order.status == OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value),
                    else_=Order.status,
                ),
                stripe_payment_intent_id=_payment_intent_id(event.data_object),
                updated_at=utcnow(),
            )
        )
        session.commit()

    if not result.rowcount:
        logger.info("Order %s was settled by a concurrent delivery", order_id)
    elif status == OrderStatus.PENDING:
        logger.info("Order %s paid and confirmed", order_id)
    else:
        logger.warning("Order %s paid while '%s'; status left unchanged", order_id, status)
    return ACK
