from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from study_scheduler.schemas.auth import UserRead
from study_scheduler.schemas.subscription import SubscriptionOut

Role = Literal["user", "admin"]


class MessageResponse(BaseModel):
    message: str


class DashboardStats(BaseModel):
    total_users: int
    active_users: int
    banned_users: int
    admin_users: int
    new_users_last_30_days: int
    active_subscriptions: int
    total_technologies: int
    total_sessions: int
    completed_sessions: int


class AdminUserRead(UserRead):
    banned_at: Optional[datetime] = None
    updated_at: datetime


class UserListResponse(BaseModel):
    users: list[AdminUserRead]
    total: int
    page: int
    per_page: int
    pages: int


class AdminUserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = Field(None, max_length=255)
    role: Role = "user"


class AdminUserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, max_length=255)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class AdminSubscriptionRead(SubscriptionOut):
    user_email: Optional[str] = None


class UserPerformance(BaseModel):
    user_id: UUID
    email: str
    full_name: Optional[str] = None
    total_sessions: int
    completed_sessions: int
    completion_rate: float
    questions_total: int
    questions_correct: int
    success_rate: float


class DailyStat(BaseModel):
    day: date
    sessions: int
    sessions_completed: int
    hours_completed: float
    questions_answered: int
    questions_correct: int
