from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from study_scheduler.schemas.study_session import StudySessionRead

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class StudyDay(BaseModel):
    day: Weekday
    hours: Decimal = Field(..., ge=0, le=24)

    @field_validator("day", mode="before")
    @classmethod
    def lower_day(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class StudyDayRead(BaseModel):
    day: str
    hours: float


class StudyConfigCreate(BaseModel):
    start_date: date
    study_days: list[StudyDay] = Field(..., min_length=1, max_length=7)
    selected_technologies: list[UUID] = Field(..., min_length=1)
    generate_schedule: bool = True


class StudyConfigUpdate(BaseModel):
    """Partial update; schedule is not regenerated until asked for."""
    start_date: Optional[date] = None
    study_days: Optional[list[StudyDay]] = Field(None, min_length=1, max_length=7)
    selected_technologies: Optional[list[UUID]] = Field(None, min_length=1)


class StudyConfigRead(BaseModel):
    id: UUID
    user_id: UUID
    start_date: date
    study_days: list[StudyDayRead]
    selected_technologies: list[UUID]
    total_weekly_hours: float
    total_selected_hours: float
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ActiveConfigResponse(BaseModel):
    configuration: Optional[StudyConfigRead] = None
    total_sessions: int = 0
    completed_sessions: int = 0


class StudyConfigCreateResponse(BaseModel):
    message: str
    configuration: StudyConfigRead
    sessions_created: int


class GenerateScheduleResponse(BaseModel):
    message: str
    sessions_created: int
    schedule: list[StudySessionRead]


class ScheduleListResponse(BaseModel):
    sessions: list[StudySessionRead]
    total: int
    page: int
    limit: int


class ResetResponse(BaseModel):
    message: str
    deleted_sessions: int
    deactivated_configurations: int
    reset_date: datetime


class ScheduleStats(BaseModel):
    configuration_id: UUID
    total_sessions: int
    completed_sessions: int
    pending_sessions: int
    total_hours: float
    completed_hours: float
    completion_rate: float
    first_session_date: Optional[date] = None
    last_session_date: Optional[date] = None


# ---------- Progress ----------

class SubtopicProgress(BaseModel):
    subtopic_id: UUID
    subtopic_name: str
    difficulty_level: str
    total_sessions: int
    completed_sessions: int
    total_hours: float
    completed_hours: float


class TechnologyProgress(BaseModel):
    technology_id: UUID
    technology_name: str
    total_sessions: int
    completed_sessions: int
    total_hours: float
    completed_hours: float
    completion_percentage: float


class TechnologyProgressDetail(TechnologyProgress):
    subtopics: list[SubtopicProgress] = []


class OverallProgress(BaseModel):
    total_sessions: int
    completed_sessions: int
    total_hours: float
    completed_hours: float
    completion_percentage: float
    technologies: list[TechnologyProgress] = []
