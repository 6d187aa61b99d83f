"""Subscriptions, the one-time free trial and Stripe webhook handling."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from study_scheduler.core.config import get_settings
from study_scheduler.models.subscription import ACCESS_STATUSES, Subscription
from study_scheduler.models.user import User
from study_scheduler.services.stripe_client import StripeClient, WebhookVerificationError

logger = logging.getLogger(__name__)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # sqlite hands back naive datetimes
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _period(stripe_sub, key: str) -> Optional[datetime]:
    """Billing period bound; newer API versions only report it per item."""
    value = stripe_sub.get(key)
    if value is None:
        items = (stripe_sub.get("items") or {}).get("data") or []
        if items:
            value = items[0].get(key)
    return _from_timestamp(value)


def _price_id(stripe_sub) -> Optional[str]:
    items = (stripe_sub.get("items") or {}).get("data") or []
    if not items:
        return None
    return (items[0].get("price") or {}).get("id")


def has_access(subscription: Optional[Subscription]) -> bool:
    if subscription is None or subscription.status not in ACCESS_STATUSES:
        return False
    period_end = _as_utc(subscription.current_period_end)
    return period_end is None or period_end > datetime.now(timezone.utc)


async def get_current_subscription(db: AsyncSession, user_id: UUID) -> Optional[Subscription]:
    """The user's most relevant subscription: one granting access if any, else the latest."""
    stmt = (
        select(Subscription)
        .where(Subscription.user_id == user_id)
        .order_by(Subscription.created_at.desc(), Subscription.id)
    )
    subscriptions = (await db.scalars(stmt)).all()
    for sub in subscriptions:
        if has_access(sub):
            return sub
    return subscriptions[0] if subscriptions else None


async def get_subscription_by_stripe_id(db: AsyncSession, stripe_subscription_id: str) -> Optional[Subscription]:
    result = await db.execute(
        select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
    )
    return result.scalar_one_or_none()


async def _stripe_customer_id(db: AsyncSession, user_id: UUID) -> Optional[str]:
    return await db.scalar(
        select(Subscription.stripe_customer_id)
        .where(Subscription.user_id == user_id, Subscription.stripe_customer_id.is_not(None))
        .limit(1)
    )


async def _user_for_customer(db: AsyncSession, customer_id: Optional[str]) -> Optional[UUID]:
    if not customer_id:
        return None
    return await db.scalar(
        select(Subscription.user_id).where(Subscription.stripe_customer_id == customer_id).limit(1)
    )


async def create_checkout(db: AsyncSession, user: User, price_id: str) -> str:
    settings = get_settings()
    customer_id = await _stripe_customer_id(db, user.id)
    if not customer_id:
        customer_id = StripeClient.create_customer(str(user.id), user.email)
    url = StripeClient.create_checkout_session(
        customer_id,
        price_id,
        f"{settings.CLIENT_URL}/subscription/success",
        f"{settings.CLIENT_URL}/subscription/cancel",
        {"user_id": str(user.id)},
    )
    logger.info("Checkout session created for user %s", user.id)
    return url


async def create_portal(db: AsyncSession, user: User) -> str:
    customer_id = await _stripe_customer_id(db, user.id)
    if not customer_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No billing account for this user"
        )
    return StripeClient.create_customer_portal_session(
        customer_id, f"{get_settings().CLIENT_URL}/subscription"
    )


async def activate_trial(db: AsyncSession, user: User) -> Subscription:
    """Start the one-time free trial."""
    used = await db.scalar(
        select(Subscription.id).where(
            Subscription.user_id == user.id, Subscription.stripe_subscription_id.is_(None)
        )
    )
    if used:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Free trial already used"
        )
    current = await get_current_subscription(db, user.id)
    if has_access(current):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Subscription already active"
        )

    now = datetime.now(timezone.utc)
    trial = Subscription(
        user_id=user.id,
        status="trialing",
        current_period_start=now,
        current_period_end=now + timedelta(days=get_settings().FREE_TRIAL_DAYS),
    )
    db.add(trial)
    await db.commit()
    await db.refresh(trial)
    logger.info("Free trial activated for user %s", user.id)
    return trial


async def cancel_subscription(db: AsyncSession, subscription_id: UUID) -> Subscription:
    sub = await db.get(Subscription, subscription_id)
    if not sub:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")
    if sub.stripe_subscription_id:
        StripeClient.cancel_subscription(sub.stripe_subscription_id, cancel_at_period_end=True)
        sub.cancel_at = sub.current_period_end
    else:
        sub.status = "canceled"
        sub.canceled_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(sub)
    return sub


async def _upsert_from_stripe(
    db: AsyncSession, stripe_sub, user_id: Optional[UUID] = None
) -> Optional[Subscription]:
    sub = await get_subscription_by_stripe_id(db, stripe_sub["id"])
    if sub is None:
        if user_id is None:
            metadata_user = (stripe_sub.get("metadata") or {}).get("user_id")
            user_id = UUID(metadata_user) if metadata_user else await _user_for_customer(
                db, stripe_sub.get("customer")
            )
        if user_id is None:
            logger.warning("No user found for Stripe subscription %s", stripe_sub["id"])
            return None
        sub = Subscription(user_id=user_id, stripe_subscription_id=stripe_sub["id"])
        db.add(sub)

    sub.stripe_customer_id = stripe_sub.get("customer") or sub.stripe_customer_id
    sub.stripe_price_id = _price_id(stripe_sub) or sub.stripe_price_id
    sub.status = stripe_sub.get("status") or sub.status or "incomplete"
    sub.current_period_start = _period(stripe_sub, "current_period_start") or sub.current_period_start
    sub.current_period_end = _period(stripe_sub, "current_period_end") or sub.current_period_end
    sub.cancel_at = _from_timestamp(stripe_sub.get("cancel_at"))
    sub.canceled_at = _from_timestamp(stripe_sub.get("canceled_at"))
    return sub


async def handle_webhook(db: AsyncSession, payload: bytes, sig_header: Optional[str]) -> dict:
    try:
        event = StripeClient.get_webhook_event(
            payload, sig_header, get_settings().STRIPE_WEBHOOK_SECRET
        )
    except WebhookVerificationError as exc:
        logger.warning("Rejected Stripe webhook: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook signature failed")

    event_type = event["type"]
    obj = event["data"]["object"]
    logger.info("Stripe webhook event: %s", event_type)

    if event_type == "checkout.session.completed":
        parsed = StripeClient.parse_checkout_session(obj)
        if parsed["subscription_id"] and parsed["user_id"]:
            stripe_sub = StripeClient.retrieve_subscription(parsed["subscription_id"])
            await _upsert_from_stripe(db, stripe_sub, UUID(parsed["user_id"]))

    elif event_type in (
        "customer.subscription.created",
        "customer.subscription.updated",
    ):
        await _upsert_from_stripe(db, obj)

    elif event_type == "customer.subscription.deleted":
        sub = await get_subscription_by_stripe_id(db, obj["id"])
        if sub:
            sub.status = "canceled"
            sub.canceled_at = _from_timestamp(obj.get("canceled_at")) or datetime.now(timezone.utc)

    elif event_type == "invoice.payment_succeeded":
        stripe_sub_id = obj.get("subscription")
        if stripe_sub_id:
            stripe_sub = StripeClient.retrieve_subscription(stripe_sub_id)
            await _upsert_from_stripe(db, stripe_sub)

    await db.commit()
    return {"status": "ok"}
