from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from study_scheduler.db.base import Base, utcnow

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")


class Technology(Base):
    __tablename__ = "technologies"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon_name = Column(String(50), nullable=False, default="Code")
    # lower ranks are studied first, e.g. HTML before CSS before JavaScript
    complexity_rank = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    subtopics = relationship(
        "Subtopic",
        back_populates="technology",
        cascade="all, delete-orphan",
        order_by="Subtopic.order_index",
    )


class Subtopic(Base):
    __tablename__ = "technology_subtopics"
    __table_args__ = (
        CheckConstraint("hours_required > 0", name="ck_subtopics_hours_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    technology_id = Column(
        Uuid,
        ForeignKey("technologies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    hours_required = Column(Numeric(6, 2), nullable=False)
    difficulty_level = Column(
        Enum(*DIFFICULTY_LEVELS, name="difficulty_level_enum"),
        nullable=False,
        default="beginner",
    )
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    technology = relationship("Technology", back_populates="subtopics")
    questions = relationship(
        "Question", back_populates="subtopic", cascade="all, delete-orphan"
    )
