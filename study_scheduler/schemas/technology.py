from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

DifficultyLevel = Literal["beginner", "intermediate", "advanced"]


# ---------- Subtopics ----------

class SubtopicBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    hours_required: Decimal = Field(..., gt=0, le=1000, decimal_places=2)
    difficulty_level: DifficultyLevel = "beginner"
    order_index: int = Field(0, ge=0)


class SubtopicCreate(SubtopicBase):
    pass


class SubtopicUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    hours_required: Optional[Decimal] = Field(None, gt=0, le=1000, decimal_places=2)
    difficulty_level: Optional[DifficultyLevel] = None
    order_index: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class SubtopicRead(BaseModel):
    id: UUID
    technology_id: UUID
    name: str
    description: Optional[str] = None
    hours_required: float
    difficulty_level: str
    order_index: int
    is_active: bool

    class Config:
        from_attributes = True


# ---------- Technologies ----------

class TechnologyBase(BaseModel):
    name: str = Field(..., max_length=100)
    description: Optional[str] = None
    icon_name: str = Field("Code", max_length=50)
    complexity_rank: int = Field(0, ge=0)


class TechnologyCreate(TechnologyBase):
    pass


class TechnologyUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    icon_name: Optional[str] = Field(None, max_length=50)
    complexity_rank: Optional[int] = Field(None, ge=0)


class TechnologyRead(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    icon_name: str
    complexity_rank: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TechnologyWithHours(TechnologyRead):
    total_hours: float = 0
    subtopics_count: int = 0


class TechnologyDetail(TechnologyRead):
    subtopics: list[SubtopicRead] = []


class TechnologyStats(BaseModel):
    total_technologies: int
    active_technologies: int
    total_hours: float
    total_subtopics: int
    average_hours_per_technology: int


class SeedResult(BaseModel):
    message: str
    count: int
    technologies: list[TechnologyRead]
