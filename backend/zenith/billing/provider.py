"""Stripe checkout and subscription webhook handling."""

from __future__ import annotations

from typing import Any

import stripe
from flask import current_app

from ..models import User


class StripeCheckout:
    """Creates subscription checkout sessions and verifies webhook events."""

    def __init__(self, secret_key: str, price_id: str, frontend_origin: str, webhook_secret: str = "") -> None:
        self.secret_key = secret_key
        self.price_id = price_id
        self.frontend_origin = frontend_origin.rstrip("/")
        self.webhook_secret = webhook_secret
        self.stripe = stripe

    @property
    def webhooks_enabled(self) -> bool:
        return bool(self.webhook_secret)

    def create_checkout_session(self, user: User) -> str:
        """Start a subscription checkout for ``user`` and return its URL.

        Raises:
            stripe.StripeError: The Stripe API rejected the request.
        """
        session = self.stripe.checkout.Session.create(
            api_key=self.secret_key,
            payment_method_types=["card"],
            line_items=[{"price": self.price_id, "quantity": 1}],
            mode="subscription",
            success_url=f"{self.frontend_origin}/dashboard?payment_success=true",
            cancel_url=f"{self.frontend_origin}/dashboard?payment_canceled=true",
            client_reference_id=user.id,
            customer_email=user.email,
        )
        current_app.logger.info("Created Stripe checkout session %s for user %s", session.id, user.id)
        return session.url

    def parse_webhook(self, payload: bytes, signature: str) -> Any:
        """Verify the signature header and return the decoded event.

        Raises:
            ValueError: Malformed payload.
            stripe.SignatureVerificationError: Signature does not match.
        """
        return self.stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
