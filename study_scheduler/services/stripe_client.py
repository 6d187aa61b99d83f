import logging
from typing import Optional

import stripe

from study_scheduler.core.config import get_settings

logger = logging.getLogger(__name__)


class WebhookVerificationError(Exception):
    """Webhook payload could not be parsed or its signature did not match."""


def _configure() -> None:
    stripe.api_key = get_settings().STRIPE_SECRET_KEY


class StripeClient:
    @staticmethod
    def create_customer(user_id: str, email: Optional[str] = None) -> str:
        """Create Stripe customer with metadata"""
        _configure()
        customer_data = {"metadata": {"user_id": user_id}}
        if email:
            customer_data["email"] = email
        customer = stripe.Customer.create(**customer_data)
        return customer.id

    @staticmethod
    def create_checkout_session(
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[dict] = None,
        mode: str = "subscription",
    ) -> str:
        """Create Stripe Checkout session"""
        _configure()
        params = {
            "customer": customer_id,
            "mode": mode,
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url + "?session_id={CHECKOUT_SESSION_ID}",
            "cancel_url": cancel_url,
        }
        if metadata:
            params["metadata"] = metadata
            params["subscription_data"] = {"metadata": metadata}
        session = stripe.checkout.Session.create(**params)
        return session.url

    @staticmethod
    def create_customer_portal_session(customer_id: str, return_url: str) -> str:
        """Create Stripe Customer Portal session"""
        _configure()
        session = stripe.billing_portal.Session.create(
            customer=customer_id,
            return_url=return_url,
        )
        logger.info("Portal session created for customer %s", customer_id)
        return session.url

    @staticmethod
    def cancel_subscription(sub_id: str, cancel_at_period_end: bool = True) -> None:
        """Cancel subscription"""
        _configure()
        if cancel_at_period_end:
            stripe.Subscription.modify(sub_id, cancel_at_period_end=True)
        else:
            stripe.Subscription.cancel(sub_id)

    @staticmethod
    def retrieve_subscription(sub_id: str):
        """Get full subscription details"""
        _configure()
        return stripe.Subscription.retrieve(sub_id)

    @staticmethod
    def get_webhook_event(payload: bytes, sig_header: Optional[str], webhook_secret: str):
        """Verify and parse webhook"""
        try:
            return stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
        except ValueError as exc:
            raise WebhookVerificationError("Invalid payload") from exc
        except stripe.SignatureVerificationError as exc:
            raise WebhookVerificationError("Invalid signature") from exc

    @staticmethod
    def parse_checkout_session(session: dict) -> dict:
        """Extract data from checkout.session.completed"""
        return {
            "customer_id": session.get("customer"),
            "subscription_id": session.get("subscription"),
            "user_id": (session.get("metadata") or {}).get("user_id"),
            "payment_status": session.get("payment_status"),
        }
