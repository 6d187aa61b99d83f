from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from study_scheduler.db.base import Base, utcnow


class StudyConfiguration(Base):
    __tablename__ = "study_configurations"
    __table_args__ = (
        # at most one active configuration per user
        Index(
            "uq_study_configurations_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date = Column(Date, nullable=False)
    # [{"day": "monday", "hours": "2.00"}, ...]
    study_days = Column(JSON, nullable=False, default=list)
    # technology ids as strings, in the order the user picked them
    selected_technologies = Column(JSON, nullable=False, default=list)
    total_weekly_hours = Column(Numeric(6, 2), nullable=False, default=0)
    total_selected_hours = Column(Numeric(8, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    sessions = relationship(
        "StudySession",
        back_populates="configuration",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
