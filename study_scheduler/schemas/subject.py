from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

Difficulty = Literal["easy", "medium", "hard"]


class SubSubjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    difficulty: Difficulty = "medium"


class SubSubjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    difficulty: Optional[Difficulty] = None


class SubSubjectRead(BaseModel):
    id: UUID
    subject_id: UUID
    title: str
    difficulty: str
    created_at: datetime

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=32)
    sub_subjects: list[SubSubjectCreate] = []


class SubjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=32)
    # replaces the existing sub-subjects when given
    sub_subjects: Optional[list[SubSubjectCreate]] = None


class SubjectRead(BaseModel):
    id: UUID
    title: str
    color: Optional[str] = None
    created_at: datetime
    sub_subjects: list[SubSubjectRead] = []

    class Config:
        from_attributes = True
