"""Stripe Checkout provider implementation."""

from __future__ import annotations

import json

import stripe

from tavola_shared.logging_config import get_logger

from .base_provider import CheckoutSession, PaymentError, PaymentSessionProvider, WebhookEvent

logger = get_logger(__name__)

PAYMENT_METHOD_TYPES = ["card", "ideal"]


class StripeCheckoutProvider(PaymentSessionProvider):
    """Stripe hosted Checkout sessions and webhook verification."""

    def __init__(self, api_key: str, currency: str = "eur"):
        self._api_key = api_key
        self.currency = currency.lower()

    def validate_configuration(self) -> bool:
        if not self._api_key:
            raise PaymentError(
                "PAYMENT_SERVICE_UNAVAILABLE",
                "Payment service is not configured. Set STRIPE_API_KEY.",
            )
        return True

    def create_session(
        self,
        amount_cents: int,
        name: str,
        description: str,
        metadata: dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """
        Create a Stripe Checkout session in payment mode.

        Args:
            amount_cents: Charge in minor units
            name: Product name shown on the hosted page
            description: Product description
            metadata: Copied onto the session, read back by the webhook
            success_url: Redirect after payment, may contain {CHECKOUT_SESSION_ID}
            cancel_url: Redirect when the customer abandons checkout

        Returns:
            CheckoutSession with the Stripe session id and hosted URL

        Raises:
            PaymentError: If Stripe is not configured or the call fails
        """
        self.validate_configuration()

        if amount_cents <= 0:
            raise PaymentError("PAYMENT_SERVICE_ERROR", "Amount to charge must be greater than 0")

        try:
            session = stripe.checkout.Session.create(
                api_key=self._api_key,
                mode="payment",
                payment_method_types=PAYMENT_METHOD_TYPES,
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "product_data": {"name": name, "description": description},
                            "unit_amount": amount_cents,
                        },
                        "quantity": 1,
                    }
                ],
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.APIConnectionError as e:
            logger.error("Stripe unreachable: %s", e)
            raise PaymentError("PAYMENT_SERVICE_UNAVAILABLE", "Payment service is unavailable")
        except (stripe.AuthenticationError, stripe.PermissionError) as e:
            logger.error("Stripe rejected our credentials: %s", e)
            raise PaymentError("PAYMENT_SERVICE_UNAVAILABLE", "Payment service is misconfigured")
        except stripe.StripeError as e:
            logger.error("Stripe checkout session failed: %s", e)
            raise PaymentError("PAYMENT_SERVICE_ERROR", "Payment service error")

        return CheckoutSession(session_id=session.id, url=session.url, provider="stripe")

    def verify_and_parse_event(self, raw_body: bytes, signature: str, secret: str) -> WebhookEvent:
        payload = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
            event = json.loads(payload)
        except stripe.SignatureVerificationError as e:
            raise PaymentError(
                "SIGNATURE_VERIFICATION_FAILED",
                f"Webhook signature verification failed: {e.user_message or str(e)}",
            )
        except ValueError as e:
            raise PaymentError(
                "SIGNATURE_VERIFICATION_FAILED",
                f"Webhook signature verification failed: {e}",
            )

        return WebhookEvent(
            type=event.get("type", ""),
            data_object=(event.get("data") or {}).get("object") or {},
            event_id=event.get("id"),
        )
