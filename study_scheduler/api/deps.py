import logging
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from study_scheduler.core.config import get_settings
from study_scheduler.core.security import decode_token
from study_scheduler.db.session import get_db
from study_scheduler.models.user import User
from study_scheduler.services import subscription_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

DBSessionDep = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    db: DBSessionDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """Dependency to get current authenticated user."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


async def require_admin(current_user: CurrentUserDep) -> User:
    if not current_user.is_admin:
        logger.warning("Non-admin user %s tried an admin route", current_user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


AdminUserDep = Annotated[User, Depends(require_admin)]


async def require_active_subscription(db: DBSessionDep, current_user: CurrentUserDep) -> User:
    """Gate for paid features; admins and deployments without billing pass through."""
    if not get_settings().REQUIRE_SUBSCRIPTION or current_user.is_admin:
        return current_user
    subscription = await subscription_service.get_current_subscription(db, current_user.id)
    if not subscription_service.has_access(subscription):
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="An active subscription is required",
        )
    return current_user


SubscribedUserDep = Annotated[User, Depends(require_active_subscription)]
