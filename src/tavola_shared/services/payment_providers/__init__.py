"""Payment providers module."""

from .base_provider import CheckoutSession, PaymentError, PaymentSessionProvider, WebhookEvent
from .stripe_provider import StripeCheckoutProvider

__all__ = [
    "CheckoutSession",
    "PaymentError",
    "PaymentSessionProvider",
    "StripeCheckoutProvider",
    "WebhookEvent",
]
