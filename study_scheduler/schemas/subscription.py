from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class SubscriptionOut(BaseModel):
    id: UUID
    user_id: UUID
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriptionStatus(BaseModel):
    has_access: bool
    subscription: Optional[SubscriptionOut] = None


class CheckoutRequest(BaseModel):
    price_id: str


class UrlResponse(BaseModel):
    url: str
