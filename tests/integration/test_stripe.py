"""
Integration tests for Stripe checkout, subscription management and webhooks.
"""

import hashlib
import hmac
import json
import time
from datetime import timedelta
from unittest.mock import patch

from sqlalchemy import select

from database.models import PaymentHistory, Subscription, User, utcnow
from tests.conftest import fetch, fetch_all, run_async, token_for

WEBHOOK_SECRET = "whsec_test_secret"


def add_stripe_subscription(user, tier="pro", stripe_subscription_id="sub_test"):
    """Commit an active Stripe subscription for a user."""
    from database import get_session_factory
    from database.repositories import SubscriptionRepository

    async def create():
        async with get_session_factory()() as session:
            subscription = await SubscriptionRepository(session).create(
                user_id=user.id,
                tier=tier,
                expires_at=utcnow() + timedelta(days=30),
                payment_provider="stripe",
                price=29.9,
                credits_per_month=3000,
                images_per_month=750,
                stripe_subscription_id=stripe_subscription_id,
            )
            await session.commit()
            return subscription

    return run_async(create())


def signed_headers(payload: str, secret: str = WEBHOOK_SECRET) -> dict[str, str]:
    """Stripe-Signature header for a payload."""
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256
    ).hexdigest()
    return {"stripe-signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


def checkout_event(user, event_id="evt_checkout_1", tier="pro") -> str:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_test_123",
                    "object": "checkout.session",
                    "customer": "cus_test123",
                    "subscription": "sub_test",
                    "metadata": {"supabase_user_id": str(user.id), "subscription_tier": tier},
                }
            },
        }
    )


class TestCreateCheckoutSession:
    """Tests for POST /api/stripe/create-checkout-session."""

    def test_creates_session(self, client, user, auth_headers, use_stripe, settings):
        with patch.object(settings, "stripe_price_id_basic", "price_basic_live"):
            response = client.post(
                "/api/stripe/create-checkout-session",
                json={"tier": "basic", "successUrl": "https://app.example.com/ok"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "sessionId": "cs_test_123",
            "sessionUrl": "https://checkout.stripe.com/c/pay/cs_test_123",
        }

        use_stripe.create_customer.assert_awaited_once_with(user.email, str(user.id))
        kwargs = use_stripe.create_checkout_session.call_args.kwargs
        assert kwargs["price_id"] == "price_basic_live"
        assert kwargs["customer_id"] == "cus_test123"
        assert kwargs["success_url"] == "https://app.example.com/ok"
        assert fetch(User, user.id).stripe_customer_id == "cus_test123"

    def test_reuses_existing_customer(self, client, make_user, use_stripe, settings):
        customer = make_user(stripe_customer_id="cus_existing")

        with patch.object(settings, "stripe_price_id_pro", "price_pro_live"):
            client.post(
                "/api/stripe/create-checkout-session",
                json={"tier": "pro"},
                headers={"Authorization": f"Bearer {token_for(customer)}"},
            )

        use_stripe.create_customer.assert_not_awaited()
        assert use_stripe.create_checkout_session.call_args.kwargs["customer_id"] == "cus_existing"

    def test_invalid_tier(self, client, auth_headers, use_stripe):
        for tier in ("free", "platinum", None):
            response = client.post(
                "/api/stripe/create-checkout-session", json={"tier": tier}, headers=auth_headers
            )
            assert response.status_code == 400
            assert response.json()["error"]["message"] == "Invalid subscription tier"

    def test_placeholder_price(self, client, auth_headers, use_stripe):
        response = client.post(
            "/api/stripe/create-checkout-session", json={"tier": "pro"}, headers=auth_headers
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "configuration_error"
        use_stripe.create_checkout_session.assert_not_awaited()

    def test_already_subscribed(self, client, user, auth_headers, use_stripe, settings):
        add_stripe_subscription(user)

        with patch.object(settings, "stripe_price_id_pro", "price_pro_live"):
            response = client.post(
                "/api/stripe/create-checkout-session", json={"tier": "pro"}, headers=auth_headers
            )

        assert response.status_code == 400
        use_stripe.create_checkout_session.assert_not_awaited()

    def test_session_details(self, client, use_stripe):
        use_stripe.retrieve_checkout_session.return_value = {
            "id": "cs_test_123",
            "payment_status": "paid",
            "status": "complete",
            "customer_details": {"email": "buyer@example.com"},
            "subscription": "sub_test",
            "amount_total": 2990,
            "currency": "usd",
        }

        response = client.get(
            "/api/stripe/create-checkout-session", params={"session_id": "cs_test_123"}
        )

        assert response.status_code == 200
        session = response.json()["session"]
        assert session["customer_email"] == "buyer@example.com"
        assert session["amount_total"] == 2990

    def test_session_details_requires_id(self, client, use_stripe):
        response = client.get("/api/stripe/create-checkout-session")
        assert response.status_code == 400


class TestManageSubscription:
    """Tests for /api/stripe/manage-subscription."""

    def test_no_subscription(self, client, auth_headers, use_stripe):
        response = client.get("/api/stripe/manage-subscription", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["subscription"] is None
        assert data["message"] == "No active Stripe subscription found"

    def test_get_with_stripe_details(self, client, user, auth_headers, use_stripe):
        add_stripe_subscription(user)
        use_stripe.retrieve_subscription.return_value = {
            "id": "sub_test",
            "status": "active",
            "cancel_at_period_end": False,
            "current_period_end": int(time.time()) + 86400,
        }

        response = client.get("/api/stripe/manage-subscription", headers=auth_headers)

        subscription = response.json()["subscription"]
        assert subscription["tier"] == "pro"
        assert subscription["price"] == 29.9
        assert subscription["stripe_details"]["status"] == "active"

    def test_cancel_at_period_end(self, client, user, auth_headers, use_stripe):
        created = add_stripe_subscription(user)
        use_stripe.set_cancel_at_period_end.return_value = {
            "id": "sub_test",
            "status": "active",
            "cancel_at_period_end": True,
        }

        response = client.post(
            "/api/stripe/manage-subscription", json={"action": "cancel"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert "end of the billing period" in response.json()["message"]
        use_stripe.set_cancel_at_period_end.assert_awaited_once_with("sub_test", True)
        assert fetch(Subscription, created.id).auto_renew is False

    def test_resume(self, client, user, auth_headers, use_stripe):
        created = add_stripe_subscription(user)
        use_stripe.set_cancel_at_period_end.return_value = {"id": "sub_test", "status": "active"}

        response = client.post(
            "/api/stripe/manage-subscription", json={"action": "resume"}, headers=auth_headers
        )

        assert response.json()["message"] == "Subscription resumed successfully"
        assert fetch(Subscription, created.id).auto_renew is True

    def test_invalid_action(self, client, auth_headers, use_stripe):
        response = client.post(
            "/api/stripe/manage-subscription", json={"action": "pause"}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_cancel_without_subscription(self, client, auth_headers, use_stripe):
        response = client.post(
            "/api/stripe/manage-subscription", json={"action": "cancel"}, headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "subscription_not_found"

    def test_cancel_immediately(self, client, make_user, use_stripe):
        subscriber = make_user(subscription_tier="pro")
        created = add_stripe_subscription(subscriber)

        response = client.delete(
            "/api/stripe/manage-subscription",
            headers={"Authorization": f"Bearer {token_for(subscriber)}"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Subscription cancelled immediately"
        use_stripe.cancel_subscription.assert_awaited_once_with("sub_test")
        assert fetch(Subscription, created.id).status == "cancelled"
        assert fetch(User, subscriber.id).subscription_tier == "free"

    def test_portal(self, client, make_user, use_stripe):
        customer = make_user(stripe_customer_id="cus_existing")

        response = client.put(
            "/api/stripe/manage-subscription",
            headers={"Authorization": f"Bearer {token_for(customer)}"},
        )

        assert response.status_code == 200
        assert response.json()["portal_url"] == "https://billing.stripe.com/p/session/test"

    def test_portal_without_customer(self, client, auth_headers, use_stripe):
        response = client.put("/api/stripe/manage-subscription", headers=auth_headers)
        assert response.status_code == 404


class TestWebhook:
    """Tests for POST /api/stripe/webhook."""

    def _stripe_subscription(self):
        return {
            "id": "sub_test",
            "status": "active",
            "cancel_at_period_end": False,
            "current_period_end": int(time.time()) + 30 * 86400,
            "items": {"data": [{"price": {"id": "price_pro_live"}}]},
        }

    def test_checkout_completed(self, client, user, use_stripe):
        use_stripe.retrieve_subscription.return_value = self._stripe_subscription()
        payload = checkout_event(user)

        response = client.post(
            "/api/stripe/webhook", content=payload, headers=signed_headers(payload)
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}

        stored = fetch(User, user.id)
        assert stored.subscription_tier == "pro"
        assert stored.credits == 3000
        assert stored.stripe_customer_id == "cus_test123"

        subscriptions = fetch_all(select(Subscription))
        assert [s.stripe_subscription_id for s in subscriptions] == ["sub_test"]
        assert len(fetch_all(select(PaymentHistory))) == 1

    def test_redelivered_event_applied_once(self, client, user, use_stripe):
        use_stripe.retrieve_subscription.return_value = self._stripe_subscription()
        payload = checkout_event(user)

        client.post("/api/stripe/webhook", content=payload, headers=signed_headers(payload))
        response = client.post(
            "/api/stripe/webhook", content=payload, headers=signed_headers(payload)
        )

        assert response.json() == {"received": True, "duplicate": True}
        assert len(fetch_all(select(PaymentHistory))) == 1

    def test_missing_signature(self, client, user, use_stripe):
        response = client.post("/api/stripe/webhook", content=checkout_event(user))

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Missing signature"

    def test_bad_signature(self, client, user, use_stripe):
        payload = checkout_event(user)

        response = client.post(
            "/api/stripe/webhook",
            content=payload,
            headers=signed_headers(payload, secret="whsec_someone_else"),
        )

        assert response.status_code == 400
        assert fetch(User, user.id).subscription_tier == "free"

    def test_handler_failure(self, client, user, use_stripe, mock_redis):
        use_stripe.retrieve_subscription.side_effect = RuntimeError("stripe down")
        payload = checkout_event(user, event_id="evt_fails")

        response = client.post(
            "/api/stripe/webhook", content=payload, headers=signed_headers(payload)
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Webhook processing failed"}
        assert run_async(mock_redis.get("stripe:event:evt_fails")) is None
        assert fetch(User, user.id).subscription_tier == "free"

    def test_unhandled_event_type(self, client, use_stripe):
        payload = json.dumps(
            {"id": "evt_other", "object": "event", "type": "customer.created", "data": {"object": {}}}
        )

        response = client.post(
            "/api/stripe/webhook", content=payload, headers=signed_headers(payload)
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
