from __future__ import annotations

from typing import Any

import stripe
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from ..common.acl import current_user
from ..common.errors import APIError, UpstreamFailure, ValidationError
from ..extensions import db
from ..models import SubscriptionStatus, User


billing_bp = Blueprint("billing", __name__)


def _provider():
    return current_app.extensions["payment_provider"]


def _apply_checkout_completed(session: Any) -> None:
    user_id = session.get("client_reference_id")
    user = db.session.get(User, user_id) if user_id else None
    if user is None:
        current_app.logger.warning("Checkout completed for unknown user %s", user_id)
        return
    user.subscription_status = SubscriptionStatus.PRO
    if session.get("customer"):
        user.stripe_customer_id = session.get("customer")
    current_app.logger.info("User %s upgraded to pro", user.id)


def _apply_subscription_deleted(subscription: Any) -> None:
    customer_id = subscription.get("customer")
    user = User.query.filter_by(stripe_customer_id=customer_id).one_or_none() if customer_id else None
    if user is None:
        current_app.logger.warning("Subscription ended for unknown customer %s", customer_id)
        return
    user.subscription_status = SubscriptionStatus.FREE
    current_app.logger.info("User %s downgraded to free", user.id)


@billing_bp.post("/create-checkout-session")
@jwt_required()
def create_checkout_session():
    user = current_user()
    try:
        url = _provider().create_checkout_session(user)
    except stripe.StripeError as error:
        current_app.logger.error("Stripe error: %s", error)
        raise UpstreamFailure("Failed to create checkout session.") from error
    return jsonify({"url": url})


@billing_bp.post("/stripe/webhook")
def stripe_webhook():
    provider = _provider()
    if not provider.webhooks_enabled:
        raise APIError(503, "WEBHOOK_DISABLED", "Stripe webhooks are not configured.")

    signature = request.headers.get("Stripe-Signature", "")
    try:
        event = provider.parse_webhook(request.get_data(), signature)
    except (ValueError, stripe.SignatureVerificationError) as error:
        raise ValidationError("Invalid webhook payload or signature.", code="INVALID_WEBHOOK") from error

    event_type = event["type"]
    data_object = event["data"]["object"]
    if event_type == "checkout.session.completed":
        _apply_checkout_completed(data_object)
    elif event_type == "customer.subscription.deleted":
        _apply_subscription_deleted(data_object)
    else:
        current_app.logger.debug("Ignoring Stripe event %s", event_type)
    db.session.commit()

    return jsonify({"received": True})
