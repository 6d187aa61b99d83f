from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from study_scheduler.db.base import Base, utcnow


class Question(Base):
    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    subtopic_id = Column(
        Uuid,
        ForeignKey("technology_subtopics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(Text, nullable=False)
    options = Column(JSON, nullable=False, default=list)
    correct_answer = Column(Text, nullable=False)
    explanation = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    subtopic = relationship("Subtopic", back_populates="questions")


class SessionAnswer(Base):
    """One graded answer submitted for a study session."""

    __tablename__ = "study_session_questions"
    __table_args__ = (
        UniqueConstraint("study_session_id", "question_id", name="uq_session_question"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    study_session_id = Column(
        Uuid,
        ForeignKey("technology_study_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    selected_answer = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    answered_at = Column(DateTime, nullable=False, default=utcnow)

    session = relationship("StudySession", back_populates="answers")
