"""Admin operations: user management, subscriptions and aggregate reporting."""
import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from study_scheduler.db.base import utcnow
from study_scheduler.models.study_config import StudyConfiguration
from study_scheduler.models.study_session import StudySession
from study_scheduler.models.subject import Subject, SubSubject
from study_scheduler.models.subscription import ACCESS_STATUSES, Subscription
from study_scheduler.models.technology import Technology
from study_scheduler.models.user import User
from study_scheduler.schemas.admin import (
    AdminSubscriptionRead,
    AdminUserCreate,
    AdminUserUpdate,
    DailyStat,
    DashboardStats,
    UserPerformance,
)
from study_scheduler.services import auth_service, schedule_service

logger = logging.getLogger(__name__)


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


async def _count(db: AsyncSession, model, *criteria) -> int:
    return await db.scalar(select(func.count()).select_from(model).where(*criteria)) or 0


async def dashboard_stats(db: AsyncSession) -> DashboardStats:
    month_ago = utcnow() - timedelta(days=30)
    return DashboardStats(
        total_users=await _count(db, User),
        active_users=await _count(db, User, User.is_active.is_(True)),
        banned_users=await _count(db, User, User.is_active.is_(False)),
        admin_users=await _count(db, User, User.role == "admin"),
        new_users_last_30_days=await _count(db, User, User.created_at >= month_ago),
        active_subscriptions=await _count(db, Subscription, Subscription.status.in_(ACCESS_STATUSES)),
        total_technologies=await _count(db, Technology, Technology.is_active.is_(True)),
        total_sessions=await _count(db, StudySession),
        completed_sessions=await _count(db, StudySession, StudySession.is_completed.is_(True)),
    )


# ---------- Users ----------

async def get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


async def list_users(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 10,
    search: Optional[str] = None,
    role: Optional[str] = None,
    user_status: Optional[str] = None,
) -> dict:
    criteria = []
    if search:
        pattern = f"%{search}%"
        criteria.append(or_(User.email.ilike(pattern), User.full_name.ilike(pattern)))
    if role:
        criteria.append(User.role == role)
    if user_status == "active":
        criteria.append(User.is_active.is_(True))
    elif user_status == "banned":
        criteria.append(User.is_active.is_(False))

    total = await _count(db, User, *criteria)
    stmt = (
        select(User)
        .where(*criteria)
        .order_by(User.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    users = (await db.scalars(stmt)).all()
    return {
        "users": users,
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": math.ceil(total / per_page) if per_page else 0,
    }


async def create_user(db: AsyncSession, data: AdminUserCreate) -> User:
    user = await auth_service.create_user(db, data.email, data.password, data.full_name, data.role)
    await db.commit()
    await db.refresh(user)
    logger.info("Admin created user %s", user.email)
    return user


async def update_user(db: AsyncSession, user_id: UUID, data: AdminUserUpdate) -> User:
    user = await get_user_or_404(db, user_id)
    payload = data.model_dump(exclude_unset=True)
    if "email" in payload:
        payload["email"] = payload["email"].lower()
        existing = await auth_service.get_user_by_email(db, payload["email"])
        if existing and existing.id != user.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    for field, value in payload.items():
        setattr(user, field, value)
    if "is_active" in payload:
        user.banned_at = None if user.is_active else datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, admin: User, user_id: UUID) -> None:
    if admin.id == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete yourself")
    user = await get_user_or_404(db, user_id)
    await schedule_service.clear_sessions(db, StudySession.user_id == user_id)
    await db.execute(delete(StudyConfiguration).where(StudyConfiguration.user_id == user_id))
    await db.execute(
        delete(SubSubject).where(
            SubSubject.subject_id.in_(select(Subject.id).where(Subject.user_id == user_id))
        )
    )
    await db.execute(delete(Subject).where(Subject.user_id == user_id))
    await db.delete(user)
    await db.commit()
    logger.info("Admin %s deleted user %s", admin.id, user_id)


async def set_banned(db: AsyncSession, admin: User, user_id: UUID, banned: bool) -> User:
    if admin.id == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot ban yourself")
    user = await get_user_or_404(db, user_id)
    user.is_active = not banned
    user.banned_at = datetime.now(timezone.utc) if banned else None
    await db.commit()
    await db.refresh(user)
    logger.info("Admin %s set banned=%s for user %s", admin.id, banned, user_id)
    return user


async def set_role(db: AsyncSession, admin: User, user_id: UUID, role: str) -> User:
    if admin.id == user_id and role != "admin":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot demote yourself")
    user = await get_user_or_404(db, user_id)
    user.role = role
    await db.commit()
    await db.refresh(user)
    return user


# ---------- Subscriptions ----------

async def list_subscriptions(db: AsyncSession) -> list[AdminSubscriptionRead]:
    stmt = (
        select(Subscription)
        .options(selectinload(Subscription.user))
        .order_by(Subscription.created_at.desc())
    )
    subscriptions = (await db.scalars(stmt)).all()
    out = []
    for sub in subscriptions:
        row = AdminSubscriptionRead.model_validate(sub)
        row.user_email = sub.user.email if sub.user else None
        out.append(row)
    return out


# ---------- Reporting ----------

async def users_performance(db: AsyncSession) -> list[UserPerformance]:
    done = StudySession.is_completed.is_(True)
    stmt = (
        select(
            User.id,
            User.email,
            User.full_name,
            func.count(StudySession.id),
            func.coalesce(func.sum(case((done, 1), else_=0)), 0),
            func.coalesce(func.sum(StudySession.questions_total), 0),
            func.coalesce(func.sum(StudySession.questions_correct), 0),
        )
        .join(StudySession, StudySession.user_id == User.id)
        .group_by(User.id, User.email, User.full_name)
        .order_by(User.email)
    )
    rows = []
    for user_id, email, full_name, total, completed, questions, correct in await db.execute(stmt):
        rows.append(
            UserPerformance(
                user_id=user_id,
                email=email,
                full_name=full_name,
                total_sessions=total,
                completed_sessions=completed,
                completion_rate=_rate(completed, total),
                questions_total=questions,
                questions_correct=correct,
                success_rate=_rate(correct, questions),
            )
        )
    return rows


async def daily_stats(
    db: AsyncSession, start_date: Optional[date] = None, end_date: Optional[date] = None
) -> list[DailyStat]:
    done = StudySession.is_completed.is_(True)
    stmt = (
        select(
            StudySession.scheduled_date,
            func.count(StudySession.id),
            func.coalesce(func.sum(case((done, 1), else_=0)), 0),
            func.coalesce(func.sum(case((done, StudySession.scheduled_hours), else_=0)), 0),
            func.coalesce(func.sum(StudySession.questions_total), 0),
            func.coalesce(func.sum(StudySession.questions_correct), 0),
        )
        .group_by(StudySession.scheduled_date)
        .order_by(StudySession.scheduled_date)
    )
    if start_date:
        stmt = stmt.where(StudySession.scheduled_date >= start_date)
    if end_date:
        stmt = stmt.where(StudySession.scheduled_date <= end_date)

    return [
        DailyStat(
            day=day,
            sessions=total,
            sessions_completed=completed,
            hours_completed=float(hours),
            questions_answered=questions,
            questions_correct=correct,
        )
        for day, total, completed, hours, questions, correct in await db.execute(stmt)
    ]
