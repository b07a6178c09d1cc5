"""
Subscription billing: payment intent creation and webhook reconciliation.

The webhook is the only place where Stripe's view of a payment becomes the
user's ``is_premium`` flag. Events are verified against the raw request body
before anything is parsed, and every settled payment is recorded under its
Stripe event and payment intent ids so replays change nothing.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import stripe
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.payment import Payment
from app.models.user import User

logger = logging.getLogger(__name__)

# Server-side pricing, clients never choose the amount
SUBSCRIPTION_PRICE_CENTS = 900
SUBSCRIPTION_CURRENCY = "usd"

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


class WebhookVerificationError(Exception):
    """The webhook could not be authenticated."""


class PaymentsNotConfigured(Exception):
    """A Stripe key or secret required for this operation is missing."""


class UnknownPaymentUser(Exception):
    """A verified payment references a user that does not exist."""


@dataclass
class ReconcileResult:
    status: str  # "upgraded" | "duplicate" | "ignored"
    user_id: Optional[str] = None


def create_payment_intent(user: User, api_key: Optional[str]) -> stripe.PaymentIntent:
    """Create a PaymentIntent for the fixed subscription price, tagged with our user id."""
    if not api_key:
        raise PaymentsNotConfigured("STRIPE_SECRET_KEY is not set")

    return stripe.PaymentIntent.create(
        amount=SUBSCRIPTION_PRICE_CENTS,
        currency=SUBSCRIPTION_CURRENCY,
        automatic_payment_methods={"enabled": True},
        metadata={"user_id": str(user.id)},
        api_key=api_key,
    )


def verify_webhook(payload: bytes, sig_header: Optional[str], secret: Optional[str]) -> stripe.Event:
    """
    Authenticate a webhook delivery and build the event from it.

    ``payload`` must be the untouched request body: the signature covers the
    exact bytes Stripe sent.
    """
    if not secret:
        raise PaymentsNotConfigured("STRIPE_WEBHOOK_SECRET is not set")
    if not sig_header:
        raise WebhookVerificationError("Missing Stripe-Signature header")

    try:
        return stripe.Webhook.construct_event(payload, sig_header, secret)
    except stripe.SignatureVerificationError as e:
        raise WebhookVerificationError(str(e)) from e
    except ValueError as e:
        # Body is not JSON (or not UTF-8)
        raise WebhookVerificationError("Invalid webhook payload") from e


def apply_payment_succeeded(db: Session, event: stripe.Event) -> ReconcileResult:
    """
    Mark the paying user premium and record the payment.

    Idempotent: an event (or payment intent) that is already recorded is
    reported as a duplicate and leaves the database untouched.
    """
    event_id = event.get("id")
    intent = (event.get("data") or {}).get("object") or {}
    intent_id = intent.get("id")
    user_id = (intent.get("metadata") or {}).get("user_id")

    if not event_id or not intent_id or not user_id:
        logger.warning("Payment event %s lacks id, intent or user metadata, ignoring", event_id)
        return ReconcileResult(status="ignored")

    already = db.query(Payment).filter(
        (Payment.stripe_event_id == event_id) | (Payment.stripe_payment_intent_id == intent_id)
    ).first()
    if already:
        logger.info("Payment event %s already applied, skipping", event_id)
        return ReconcileResult(status="duplicate", user_id=already.user_id)

    if not db.query(User.id).filter(User.id == user_id).first():
        raise UnknownPaymentUser(user_id)

    db.add(Payment(
        user_id=user_id,
        stripe_event_id=event_id,
        stripe_payment_intent_id=intent_id,
        amount_cents=intent.get("amount_received") or intent.get("amount") or 0,
        currency=intent.get("currency") or SUBSCRIPTION_CURRENCY,
    ))
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(is_premium=True, stripe_subscription_id=intent_id)
    )

    try:
        db.commit()
    except IntegrityError:
        # A concurrent delivery of the same event committed first
        db.rollback()
        logger.info("Payment event %s applied concurrently, skipping", event_id)
        return ReconcileResult(status="duplicate", user_id=user_id)

    logger.info("User %s upgraded to premium (event %s)", user_id, event_id)
    return ReconcileResult(status="upgraded", user_id=user_id)


def reconcile_event(db: Session, event: stripe.Event) -> ReconcileResult:
    if event.get("type") == PAYMENT_SUCCEEDED:
        return apply_payment_succeeded(db, event)

    logger.info("Ignoring webhook event type %s", event.get("type"))
    return ReconcileResult(status="ignored")
