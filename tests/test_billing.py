"""Payment intent creation and Stripe webhook reconciliation."""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from app.models.payment import Payment
from app.models.user import User
from app.services.subscriptions import (
    SUBSCRIPTION_PRICE_CENTS,
    PaymentsNotConfigured,
    WebhookVerificationError,
    verify_webhook,
)


def stripe_signature(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header the way Stripe does."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def payment_event(user_id: str, event_id: str = "evt_1", intent_id: str = "pi_1") -> bytes:
    return json.dumps({
        "id": event_id,
        "type": "payment_intent.succeeded",
        "data": {
            "object": {
                "id": intent_id,
                "object": "payment_intent",
                "amount": SUBSCRIPTION_PRICE_CENTS,
                "amount_received": SUBSCRIPTION_PRICE_CENTS,
                "currency": "usd",
                "metadata": {"user_id": user_id},
            }
        },
    }).encode("utf-8")


@pytest.fixture
def sign(settings):
    def _sign(payload: bytes, secret: str | None = None, timestamp: int | None = None) -> str:
        return stripe_signature(payload, secret or settings.stripe_webhook_secret, timestamp)

    return _sign


@pytest.fixture
def reader(client, user_headers, db) -> User:
    client.get("/api/auth/user", headers=user_headers)
    return db.query(User).filter(User.provider_sub == "sub-reader").one()


def post_webhook(client, payload: bytes, signature: str | None):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature
    return client.post("/api/stripe-webhook", content=payload, headers=headers)


def _premium(db, user_id: str) -> bool:
    db.expire_all()
    return db.query(User).filter(User.id == user_id).one().is_premium


# --- Payment intents ---

def test_payment_intent_uses_server_price(client, user_headers, reader, monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(client_secret="pi_1_secret_abc")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    response = client.post("/api/create-payment-intent", json={"amount": 1}, headers=user_headers)

    assert response.status_code == 200
    assert response.json() == {"client_secret": "pi_1_secret_abc"}
    assert calls[0]["amount"] == SUBSCRIPTION_PRICE_CENTS
    assert calls[0]["currency"] == "usd"
    assert calls[0]["metadata"] == {"user_id": reader.id}
    assert calls[0]["api_key"] == "sk_test_123"


def test_payment_intent_requires_login(client):
    assert client.post("/api/create-payment-intent").status_code == 401


def test_payment_intent_not_configured(client, settings, user_headers):
    settings.stripe_secret_key = None

    response = client.post("/api/create-payment-intent", headers=user_headers)

    assert response.status_code == 503
    assert response.json() == {"message": "Payments are not configured"}


def test_payment_intent_stripe_failure(client, user_headers, monkeypatch):
    def failing_create(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.PaymentIntent, "create", failing_create)

    assert client.post("/api/create-payment-intent", headers=user_headers).status_code == 502


def test_billing_config(client, settings):
    assert client.get("/api/billing/config").json() == {
        "configured": True,
        "publishable_key": "pk_test_123",
        "price_cents": SUBSCRIPTION_PRICE_CENTS,
        "currency": "usd",
    }

    settings.stripe_secret_key = None
    assert client.get("/api/billing/config").json()["configured"] is False


# --- Webhook ---

def test_verified_payment_upgrades_user(client, sign, reader, db):
    payload = payment_event(reader.id)

    response = post_webhook(client, payload, sign(payload))

    assert response.status_code == 200
    assert response.json() == {"received": True, "status": "upgraded"}
    assert _premium(db, reader.id) is True
    user = db.query(User).filter(User.id == reader.id).one()
    assert user.stripe_subscription_id == "pi_1"


def test_invalid_signature_changes_nothing(client, sign, reader, db):
    payload = payment_event(reader.id)

    response = post_webhook(client, payload, sign(payload, secret="whsec_wrong"))

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid webhook signature"}
    assert _premium(db, reader.id) is False
    assert db.query(Payment).count() == 0


def test_tampered_body_changes_nothing(client, sign, reader, db):
    payload = payment_event(reader.id)
    signature = sign(payload)
    tampered = payment_event(reader.id, intent_id="pi_other")

    assert post_webhook(client, tampered, signature).status_code == 400
    assert _premium(db, reader.id) is False


def test_missing_signature_changes_nothing(client, reader, db):
    response = post_webhook(client, payment_event(reader.id), None)

    assert response.status_code == 400
    assert _premium(db, reader.id) is False


def test_stale_signature_rejected(client, sign, reader, db):
    payload = payment_event(reader.id)

    response = post_webhook(client, payload, sign(payload, timestamp=int(time.time()) - 3600))

    assert response.status_code == 400
    assert _premium(db, reader.id) is False


def test_missing_webhook_secret_fails_closed(client, sign, settings, reader, db):
    payload = payment_event(reader.id)
    signature = sign(payload)
    settings.stripe_webhook_secret = None

    response = post_webhook(client, payload, signature)

    assert response.status_code == 503
    assert _premium(db, reader.id) is False


def test_replayed_event_is_idempotent(client, sign, reader, db):
    payload = payment_event(reader.id)

    first = post_webhook(client, payload, sign(payload))
    second = post_webhook(client, payload, sign(payload))

    assert first.json()["status"] == "upgraded"
    assert second.status_code == 200
    assert second.json()["status"] == "duplicate"
    assert _premium(db, reader.id) is True
    payments = db.query(Payment).all()
    assert len(payments) == 1
    assert payments[0].stripe_payment_intent_id == "pi_1"
    assert payments[0].amount_cents == SUBSCRIPTION_PRICE_CENTS


def test_same_intent_under_new_event_id_is_duplicate(client, sign, reader, db):
    first = payment_event(reader.id, event_id="evt_1")
    resent = payment_event(reader.id, event_id="evt_2")

    post_webhook(client, first, sign(first))
    response = post_webhook(client, resent, sign(resent))

    assert response.json()["status"] == "duplicate"
    assert db.query(Payment).count() == 1


def test_unknown_user_gets_non_success_for_retry(client, sign, db):
    payload = payment_event("no-such-user")

    response = post_webhook(client, payload, sign(payload))

    assert response.status_code == 404
    assert db.query(Payment).count() == 0


def test_other_event_types_are_acknowledged(client, sign, reader, db):
    payload = json.dumps({"id": "evt_9", "type": "customer.created", "data": {"object": {}}}).encode("utf-8")

    response = post_webhook(client, payload, sign(payload))

    assert response.status_code == 200
    assert response.json() == {"received": True, "status": "ignored"}
    assert _premium(db, reader.id) is False


def test_event_without_user_metadata_is_ignored(client, sign, reader, db):
    payload = json.dumps({
        "id": "evt_3",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_3", "metadata": {}}},
    }).encode("utf-8")

    response = post_webhook(client, payload, sign(payload))

    assert response.json()["status"] == "ignored"
    assert db.query(Payment).count() == 0


def test_signed_garbage_body_rejected(client, sign, reader, db):
    payload = b"not json at all"

    response = post_webhook(client, payload, sign(payload))

    assert response.status_code == 400
    assert _premium(db, reader.id) is False


def test_verify_webhook_builds_stripe_event(settings, sign):
    payload = payment_event("user-1", event_id="evt_42")

    event = verify_webhook(payload, sign(payload), settings.stripe_webhook_secret)

    assert event["id"] == "evt_42"
    assert event["type"] == "payment_intent.succeeded"
    assert event["data"]["object"]["metadata"]["user_id"] == "user-1"


def test_verify_webhook_requires_secret(sign):
    payload = payment_event("user-1")

    with pytest.raises(PaymentsNotConfigured):
        verify_webhook(payload, sign(payload), None)

    with pytest.raises(WebhookVerificationError):
        verify_webhook(payload, None, "whsec_test_secret")
