"""Base payment session provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from tavola_shared.error_catalog import ServiceError


class PaymentError(ServiceError):
    """Raised when a payment gateway call fails."""


@dataclass
class CheckoutSession:
    """Hosted checkout session created by the provider."""

    session_id: str
    url: str | None
    provider: str | None = None


@dataclass
class WebhookEvent:
    """A verified provider event."""

    type: str
    data_object: dict[str, Any] = field(default_factory=dict)
    event_id: str | None = None


class PaymentSessionProvider(ABC):
    """Abstract base class for hosted-checkout payment providers."""

    @abstractmethod
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
        Create a hosted checkout session for a single line item.

        Raises:
            PaymentError: PAYMENT_SERVICE_ERROR when the provider rejects the
                request, PAYMENT_SERVICE_UNAVAILABLE when it cannot be reached
                or is misconfigured
        """

    @abstractmethod
    def verify_and_parse_event(self, raw_body: bytes, signature: str, secret: str) -> WebhookEvent:
        """
        Verify a webhook signature against the raw body and parse the event.

        Raises:
            PaymentError: SIGNATURE_VERIFICATION_FAILED, echoing the reason
        """

    @abstractmethod
    def validate_configuration(self) -> bool:
        """
        Validate that the provider is properly configured.

        Raises:
            PaymentError: If configuration is invalid
        """

