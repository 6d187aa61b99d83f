from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from study_scheduler.db.base import Base, utcnow


class StudySession(Base):
    __tablename__ = "technology_study_sessions"
    __table_args__ = (
        CheckConstraint("scheduled_hours > 0", name="ck_sessions_hours_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    configuration_id = Column(
        Uuid,
        ForeignKey("study_configurations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    technology_id = Column(
        Uuid, ForeignKey("technologies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subtopic_id = Column(
        Uuid,
        ForeignKey("technology_subtopics.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_hours = Column(Numeric(6, 2), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    questions_total = Column(Integer, nullable=False, default=0)
    questions_correct = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    configuration = relationship("StudyConfiguration", back_populates="sessions")
    technology = relationship("Technology", lazy="joined")
    subtopic = relationship("Subtopic", lazy="joined")
    answers = relationship(
        "SessionAnswer", back_populates="session", cascade="all, delete-orphan"
    )

    @property
    def technology_name(self):
        return self.technology.name if self.technology else None

    @property
    def subtopic_name(self):
        return self.subtopic.name if self.subtopic else None

    @property
    def difficulty_level(self):
        return self.subtopic.difficulty_level if self.subtopic else None
