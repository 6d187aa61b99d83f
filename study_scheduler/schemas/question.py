from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class QuestionCreate(BaseModel):
    content: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2, max_length=10)
    correct_answer: str
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def answer_in_options(self):
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of options")
        return self


class QuestionPublic(BaseModel):
    """Question as shown to a learner; the answer stays hidden."""
    id: UUID
    subtopic_id: UUID
    content: str
    options: list[str]

    class Config:
        from_attributes = True


class QuestionRead(QuestionPublic):
    correct_answer: str
    explanation: Optional[str] = None
    created_at: datetime


class AnswerItem(BaseModel):
    question_id: UUID
    selected_answer: str


class AnswerSubmit(BaseModel):
    answers: list[AnswerItem] = Field(..., min_length=1)


class GradedAnswer(BaseModel):
    question_id: UUID
    selected_answer: str
    correct_answer: str
    is_correct: bool
    explanation: Optional[str] = None


class SubmitResult(BaseModel):
    session_id: UUID
    questions_total: int
    questions_correct: int
    score_percentage: float
    answers: list[GradedAnswer]


class TechnologyPerformance(BaseModel):
    technology_id: UUID
    technology_name: str
    sessions_completed: int
    questions_total: int
    questions_correct: int
    success_rate: float


class PerformanceResponse(BaseModel):
    total_sessions: int
    completed_sessions: int
    completion_rate: float
    total_questions: int
    correct_answers: int
    success_rate: float
    technologies: list[TechnologyPerformance] = []
