import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.services.subscriptions import (
    SUBSCRIPTION_CURRENCY,
    SUBSCRIPTION_PRICE_CENTS,
    PaymentsNotConfigured,
    UnknownPaymentUser,
    WebhookVerificationError,
    create_payment_intent,
    reconcile_event,
    verify_webhook,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["billing"])

NOT_CONFIGURED = "Payments are not configured"


@router.get("/billing/config")
def get_billing_config(settings: Settings = Depends(get_settings)):
    """What the subscribe page needs to mount Stripe Elements"""
    return {
        "configured": bool(settings.payments_configured and settings.stripe_publishable_key),
        "publishable_key": settings.stripe_publishable_key,
        "price_cents": SUBSCRIPTION_PRICE_CENTS,
        "currency": SUBSCRIPTION_CURRENCY,
    }


@router.post("/create-payment-intent")
def create_subscription_payment_intent(
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings)
):
    """
    Start a premium subscription payment.
    🔒 SECURITY: The amount is fixed server-side and the user id comes from the verified token;
    anything in the request body is ignored.
    """
    try:
        intent = create_payment_intent(user, settings.stripe_secret_key)
    except PaymentsNotConfigured:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)
    except stripe.StripeError as e:
        logger.error("Stripe rejected payment intent for user %s: %s", user.id, e)
        raise HTTPException(status_code=502, detail="Failed to create payment intent")

    return {"client_secret": intent.client_secret}


@router.post("/stripe-webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    """
    Stripe event receiver. The raw body is verified before it is parsed.
    Non-2xx answers make Stripe redeliver, so they are only used when a retry can help.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        event = verify_webhook(payload, sig_header, settings.stripe_webhook_secret)
    except PaymentsNotConfigured:
        logger.error("Webhook received but STRIPE_WEBHOOK_SECRET is not set, rejecting")
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)
    except WebhookVerificationError as e:
        logger.warning("Rejected webhook: %s", e)
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    try:
        result = reconcile_event(db, event)
    except UnknownPaymentUser as e:
        logger.error("Payment event %s references unknown user %s", event.get("id"), e)
        raise HTTPException(status_code=404, detail="User not found")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to apply webhook event %s", event.get("id"))
        raise HTTPException(status_code=500, detail="Failed to process webhook")

    return {"received": True, "status": result.status}
