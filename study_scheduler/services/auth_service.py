"""User accounts and token issuing."""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from study_scheduler.core.config import get_settings
from study_scheduler.core.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    hash_token,
    verify_password,
)
from study_scheduler.db.base import utcnow
from study_scheduler.models.user import RefreshToken, User
from study_scheduler.schemas.auth import ProfileUpdate, RegisterRequest, UserRead

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """Get user by email address."""
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    role: str = "user",
) -> User:
    if await get_user_by_email(db, email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    user = User(
        email=email.lower(),
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def create_refresh_token_db(db: AsyncSession, user_id: UUID, token_hash: str) -> RefreshToken:
    """Create refresh token in database."""
    expires_at = utcnow() + timedelta(days=get_settings().REFRESH_TOKEN_EXPIRE_DAYS)
    refresh_token = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
    db.add(refresh_token)
    await db.flush()
    return refresh_token


async def generate_tokens(db: AsyncSession, user: User) -> Dict[str, Any]:
    """Generate access and refresh tokens for user."""
    access_token = create_access_token(
        {"sub": str(user.id), "email": user.email, "role": user.role}
    )
    refresh_token, refresh_token_hash = create_refresh_token()
    await create_refresh_token_db(db, user.id, refresh_token_hash)

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": UserRead.model_validate(user),
    }


async def register(db: AsyncSession, data: RegisterRequest) -> Dict[str, Any]:
    user = await create_user(db, data.email, data.password, data.full_name)
    tokens = await generate_tokens(db, user)
    await db.commit()
    logger.info("User registration successful for: %s", user.email)
    return tokens


async def authenticate(db: AsyncSession, email: str, password: str) -> Dict[str, Any]:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )
    tokens = await generate_tokens(db, user)
    await db.commit()
    logger.info("Login successful for user: %s", user.email)
    return tokens


async def refresh(db: AsyncSession, raw_token: str) -> Dict[str, Any]:
    """Rotate a refresh token: revoke the presented one and issue a new pair."""
    result = await db.execute(
        select(RefreshToken).where(
            RefreshToken.token_hash == hash_token(raw_token),
            RefreshToken.revoked.is_(False),
            RefreshToken.expires_at > utcnow(),
        )
    )
    record = result.scalar_one_or_none()
    if not record:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    user = await db.get(User, record.user_id)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    record.revoked = True
    tokens = await generate_tokens(db, user)
    await db.commit()
    logger.info("Token refresh successful for user: %s", user.email)
    return tokens


async def logout(db: AsyncSession, user: User, raw_token: Optional[str]) -> int:
    """Revoke one refresh token, or all of the user's tokens when none is given."""
    stmt = select(RefreshToken).where(
        RefreshToken.user_id == user.id, RefreshToken.revoked.is_(False)
    )
    if raw_token:
        stmt = stmt.where(RefreshToken.token_hash == hash_token(raw_token))
    records = (await db.scalars(stmt)).all()
    for record in records:
        record.revoked = True
    await db.commit()
    logger.info("Logout for user_id %s revoked %d tokens", user.id, len(records))
    return len(records)


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user
