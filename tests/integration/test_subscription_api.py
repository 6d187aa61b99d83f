import pytest
import time

from study_scheduler.services.stripe_client import StripeClient

API = "/api/v1/subscription"


def stripe_subscription(user_id, status="active", sub_id="sub_123"):
    now = int(time.time())
    return {
        "id": sub_id,
        "customer": "cus_123",
        "status": status,
        "metadata": {"user_id": str(user_id)},
        "cancel_at": None,
        "canceled_at": None,
        "items": {
            "data": [
                {
                    "price": {"id": "price_monthly"},
                    "current_period_start": now,
                    "current_period_end": now + 30 * 24 * 3600,
                }
            ]
        },
    }


@pytest.fixture
def stripe_calls(monkeypatch):
    """Replace the Stripe client with recorders"""
    calls = {}

    def record(name, result):
        def fake(*args, **kwargs):
            calls.setdefault(name, []).append((args, kwargs))
            return result
        monkeypatch.setattr(StripeClient, name, staticmethod(fake))

    record("create_customer", "cus_123")
    record("create_checkout_session", "https://checkout.stripe.test/session")
    record("create_customer_portal_session", "https://billing.stripe.test/portal")
    record("cancel_subscription", None)
    return calls


@pytest.fixture
def send_event(client, monkeypatch):
    async def send(event_type, obj):
        event = {"type": event_type, "data": {"object": obj}}
        monkeypatch.setattr(StripeClient, "get_webhook_event", staticmethod(lambda *a, **kw: event))
        return await client.post(f"{API}/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=x"})

    return send


@pytest.mark.integration
class TestFreeTrial:

    @pytest.mark.asyncio
    async def test_no_subscription(self, client, user_headers):
        body = (await client.get(f"{API}/current", headers=user_headers)).json()
        assert body == {"has_access": False, "subscription": None}

    @pytest.mark.asyncio
    async def test_trial_once(self, client, user_headers):
        resp = await client.post(f"{API}/activate-trial", headers=user_headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "trialing"

        current = (await client.get(f"{API}/current", headers=user_headers)).json()
        assert current["has_access"] is True

        again = await client.post(f"{API}/activate-trial", headers=user_headers)
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_trial_unlocks_scheduling(
        self, client, require_subscription, user_headers, config_payload
    ):
        resp = await client.post("/api/v1/study-config", json=config_payload, headers=user_headers)
        assert resp.status_code == 402

        await client.post(f"{API}/activate-trial", headers=user_headers)
        resp = await client.post("/api/v1/study-config", json=config_payload, headers=user_headers)
        assert resp.status_code == 201


@pytest.mark.integration
class TestCheckout:

    @pytest.mark.asyncio
    async def test_checkout_creates_customer(self, client, user, user_headers, stripe_calls):
        resp = await client.post(f"{API}/checkout", json={"price_id": "price_monthly"}, headers=user_headers)
        assert resp.status_code == 200
        assert resp.json()["url"] == "https://checkout.stripe.test/session"

        assert stripe_calls["create_customer"][0][0] == (str(user.id), user.email)
        args, _ = stripe_calls["create_checkout_session"][0]
        assert args[0] == "cus_123"
        assert args[1] == "price_monthly"
        assert args[4] == {"user_id": str(user.id)}

    @pytest.mark.asyncio
    async def test_portal_needs_billing_account(self, client, user_headers, stripe_calls):
        resp = await client.post(f"{API}/portal", headers=user_headers)
        assert resp.status_code == 404


@pytest.mark.integration
class TestWebhook:

    @pytest.mark.asyncio
    async def test_bad_signature(self, client):
        resp = await client.post(f"{API}/webhook", content=b"{}", headers={"stripe-signature": "bogus"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_subscription_created(self, client, user, user_headers, send_event, stripe_calls):
        resp = await send_event("customer.subscription.created", stripe_subscription(user.id))
        assert resp.status_code == 200

        body = (await client.get(f"{API}/current", headers=user_headers)).json()
        assert body["has_access"] is True
        assert body["subscription"]["stripe_price_id"] == "price_monthly"

        # portal works once a customer is known
        portal = await client.post(f"{API}/portal", headers=user_headers)
        assert portal.json()["url"] == "https://billing.stripe.test/portal"

    @pytest.mark.asyncio
    async def test_checkout_completed(self, client, monkeypatch, user, user_headers, send_event):
        monkeypatch.setattr(
            StripeClient, "retrieve_subscription", staticmethod(lambda sub_id: stripe_subscription(user.id, sub_id=sub_id))
        )
        session = {
            "customer": "cus_123",
            "subscription": "sub_checkout",
            "metadata": {"user_id": str(user.id)},
            "payment_status": "paid",
        }
        assert (await send_event("checkout.session.completed", session)).status_code == 200

        body = (await client.get(f"{API}/current", headers=user_headers)).json()
        assert body["subscription"]["stripe_subscription_id"] == "sub_checkout"

    @pytest.mark.asyncio
    async def test_updates_are_upserts(self, client, user, user_headers, send_event):
        await send_event("customer.subscription.created", stripe_subscription(user.id))
        await send_event("customer.subscription.updated", stripe_subscription(user.id, status="past_due"))

        body = (await client.get(f"{API}/current", headers=user_headers)).json()
        assert body["has_access"] is False
        assert body["subscription"]["status"] == "past_due"

    @pytest.mark.asyncio
    async def test_subscription_deleted(self, client, user, user_headers, send_event):
        await send_event("customer.subscription.created", stripe_subscription(user.id))
        await send_event("customer.subscription.deleted", {"id": "sub_123", "canceled_at": int(time.time())})

        body = (await client.get(f"{API}/current", headers=user_headers)).json()
        assert body["has_access"] is False
        assert body["subscription"]["status"] == "canceled"

    @pytest.mark.asyncio
    async def test_unknown_customer_ignored(self, client, send_event):
        orphan = stripe_subscription("x")
        orphan["metadata"] = {}
        orphan["customer"] = "cus_unknown"
        resp = await send_event("customer.subscription.created", orphan)
        assert resp.status_code == 200
