from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from study_scheduler.db.base import Base, utcnow

SUB_SUBJECT_DIFFICULTIES = ("easy", "medium", "hard")


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid, primary_key=True, default=uuid4)
    user_id = Column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    color = Column(String(32), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    sub_subjects = relationship(
        "SubSubject",
        back_populates="subject",
        cascade="all, delete-orphan",
        order_by="SubSubject.created_at",
    )


class SubSubject(Base):
    __tablename__ = "sub_subjects"

    id = Column(Uuid, primary_key=True, default=uuid4)
    subject_id = Column(
        Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    difficulty = Column(
        Enum(*SUB_SUBJECT_DIFFICULTIES, name="sub_subject_difficulty_enum"),
        nullable=False,
        default="medium",
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)

    subject = relationship("Subject", back_populates="sub_subjects")
