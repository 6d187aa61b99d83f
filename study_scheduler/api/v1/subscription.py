import logging

from fastapi import APIRouter, Request

from study_scheduler.api.deps import CurrentUserDep, DBSessionDep
from study_scheduler.schemas.subscription import (
    CheckoutRequest,
    SubscriptionOut,
    SubscriptionStatus,
    UrlResponse,
)
from study_scheduler.services import subscription_service as svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscription", tags=["subscription"])


@router.get("/current", response_model=SubscriptionStatus)
async def current_subscription(db: DBSessionDep, current_user: CurrentUserDep):
    sub = await svc.get_current_subscription(db, current_user.id)
    return SubscriptionStatus(
        has_access=svc.has_access(sub),
        subscription=SubscriptionOut.model_validate(sub) if sub else None,
    )


@router.post("/checkout", response_model=UrlResponse)
async def create_checkout(data: CheckoutRequest, db: DBSessionDep, current_user: CurrentUserDep):
    url = await svc.create_checkout(db, current_user, data.price_id)
    return UrlResponse(url=url)


@router.post("/portal", response_model=UrlResponse)
async def create_portal(db: DBSessionDep, current_user: CurrentUserDep):
    url = await svc.create_portal(db, current_user)
    return UrlResponse(url=url)


@router.post("/activate-trial", response_model=SubscriptionOut)
async def activate_trial(db: DBSessionDep, current_user: CurrentUserDep):
    """Activate the one-time free trial."""
    return await svc.activate_trial(db, current_user)


@router.post("/webhook")
async def stripe_webhook(request: Request, db: DBSessionDep):
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    return await svc.handle_webhook(db, payload, sig_header)
