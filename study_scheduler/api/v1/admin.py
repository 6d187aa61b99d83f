from datetime import date
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from study_scheduler.api.deps import AdminUserDep, DBSessionDep
from study_scheduler.schemas.admin import (
    AdminSubscriptionRead,
    AdminUserCreate,
    AdminUserRead,
    AdminUserUpdate,
    DailyStat,
    DashboardStats,
    UserListResponse,
    UserPerformance,
)
from study_scheduler.schemas.subscription import SubscriptionOut
from study_scheduler.services import admin_service as svc
from study_scheduler.services import subscription_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(db: DBSessionDep, admin: AdminUserDep):
    return await svc.dashboard_stats(db)


# ---------- Users ----------

@router.get("/users", response_model=UserListResponse)
async def list_users(
    db: DBSessionDep,
    admin: AdminUserDep,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[Literal["user", "admin"]] = None,
    user_status: Optional[Literal["active", "banned"]] = Query(None, alias="status"),
):
    return await svc.list_users(db, page, per_page, search, role, user_status)


@router.post("/users", response_model=AdminUserRead, status_code=status.HTTP_201_CREATED)
async def create_user(data: AdminUserCreate, db: DBSessionDep, admin: AdminUserDep):
    return await svc.create_user(db, data)


@router.put("/users/{user_id}", response_model=AdminUserRead)
async def update_user(user_id: UUID, data: AdminUserUpdate, db: DBSessionDep, admin: AdminUserDep):
    return await svc.update_user(db, user_id, data)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    await svc.delete_user(db, admin, user_id)
    return None


@router.post("/users/{user_id}/ban", response_model=AdminUserRead)
async def ban_user(user_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    return await svc.set_banned(db, admin, user_id, True)


@router.post("/users/{user_id}/unban", response_model=AdminUserRead)
async def unban_user(user_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    return await svc.set_banned(db, admin, user_id, False)


@router.post("/users/{user_id}/promote", response_model=AdminUserRead)
async def promote_user(user_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    return await svc.set_role(db, admin, user_id, "admin")


@router.post("/users/{user_id}/demote", response_model=AdminUserRead)
async def demote_user(user_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    return await svc.set_role(db, admin, user_id, "user")


# ---------- Subscriptions ----------

@router.get("/subscriptions", response_model=list[AdminSubscriptionRead])
async def list_subscriptions(db: DBSessionDep, admin: AdminUserDep):
    return await svc.list_subscriptions(db)


@router.post("/subscriptions/{subscription_id}/cancel", response_model=SubscriptionOut)
async def cancel_subscription(subscription_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    return await subscription_service.cancel_subscription(db, subscription_id)


# ---------- Reporting ----------

@router.get("/performance/users", response_model=list[UserPerformance])
async def users_performance(db: DBSessionDep, admin: AdminUserDep):
    return await svc.users_performance(db)


@router.get("/performance/daily", response_model=list[DailyStat])
async def daily_stats(
    db: DBSessionDep,
    admin: AdminUserDep,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    return await svc.daily_stats(db, start_date, end_date)
