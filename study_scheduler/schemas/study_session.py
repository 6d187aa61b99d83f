from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class StudySessionRead(BaseModel):
    id: UUID
    configuration_id: UUID
    technology_id: UUID
    technology_name: Optional[str] = None
    subtopic_id: UUID
    subtopic_name: Optional[str] = None
    difficulty_level: Optional[str] = None
    scheduled_date: date
    scheduled_hours: float
    is_completed: bool
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    questions_total: int = 0
    questions_correct: int = 0

    class Config:
        from_attributes = True


class StudySessionListResponse(BaseModel):
    sessions: list[StudySessionRead]
    total: int
    page: int
    limit: int


class StudySessionUpdate(BaseModel):
    scheduled_date: Optional[date] = None
    scheduled_hours: Optional[Decimal] = Field(None, gt=0, le=24, decimal_places=2)
    is_completed: Optional[bool] = None
    notes: Optional[str] = Field(None, max_length=2000)


class CompleteSessionRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)


class BulkSessionRequest(BaseModel):
    session_ids: list[UUID] = Field(..., min_length=1, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)


class BulkSessionResult(BaseModel):
    message: str
    affected: int


class CalendarEvent(BaseModel):
    """A session shaped for a calendar widget."""
    id: UUID
    title: str
    start: date
    hours: float
    technology: str
    subtopic: str
    difficulty_level: str
    is_completed: bool
    color: str
