import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from study_scheduler.db.base import utcnow
from study_scheduler.models.study_session import StudySession
from study_scheduler.schemas.study_session import CalendarEvent, StudySessionUpdate
from study_scheduler.services import schedule_service

logger = logging.getLogger(__name__)

COMPLETED_COLOR = "#10B981"
DIFFICULTY_COLORS = {
    "beginner": "#60A5FA",
    "intermediate": "#F59E0B",
    "advanced": "#EF4444",
}


def event_color(difficulty: Optional[str], is_completed: bool) -> str:
    if is_completed:
        return COMPLETED_COLOR
    return DIFFICULTY_COLORS.get(difficulty, DIFFICULTY_COLORS["beginner"])


async def get_session_or_404(db: AsyncSession, user_id: UUID, session_id: UUID) -> StudySession:
    session = await db.get(StudySession, session_id)
    if not session or session.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Study session not found")
    return session


async def list_sessions(
    db: AsyncSession,
    user_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    technology_id: Optional[UUID] = None,
    completed: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    criteria = [StudySession.user_id == user_id]
    if start_date:
        criteria.append(StudySession.scheduled_date >= start_date)
    if end_date:
        criteria.append(StudySession.scheduled_date <= end_date)
    if technology_id:
        criteria.append(StudySession.technology_id == technology_id)
    if completed is not None:
        criteria.append(StudySession.is_completed.is_(completed))

    total = await schedule_service.count_sessions(db, *criteria)
    stmt = (
        select(StudySession)
        .where(*criteria)
        .order_by(StudySession.scheduled_date, StudySession.created_at)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    sessions = list((await db.scalars(stmt)).unique())
    return {"sessions": sessions, "total": total, "page": page, "limit": limit}


async def calendar_events(
    db: AsyncSession,
    user_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[CalendarEvent]:
    stmt = (
        select(StudySession)
        .where(StudySession.user_id == user_id)
        .order_by(StudySession.scheduled_date, StudySession.created_at)
    )
    if start_date:
        stmt = stmt.where(StudySession.scheduled_date >= start_date)
    if end_date:
        stmt = stmt.where(StudySession.scheduled_date <= end_date)

    events = []
    for session in (await db.scalars(stmt)).unique():
        events.append(
            CalendarEvent(
                id=session.id,
                title=f"{session.technology_name} - {session.subtopic_name}",
                start=session.scheduled_date,
                hours=float(session.scheduled_hours),
                technology=session.technology_name or "",
                subtopic=session.subtopic_name or "",
                difficulty_level=session.difficulty_level or "beginner",
                is_completed=session.is_completed,
                color=event_color(session.difficulty_level, session.is_completed),
            )
        )
    return events


async def complete_session(
    db: AsyncSession, user_id: UUID, session_id: UUID, notes: Optional[str] = None
) -> StudySession:
    session = await get_session_or_404(db, user_id, session_id)
    session.is_completed = True
    session.completed_at = utcnow()
    if notes is not None:
        session.notes = notes
    await db.commit()
    await db.refresh(session)
    return session


async def update_session(
    db: AsyncSession, user_id: UUID, session_id: UUID, data: StudySessionUpdate
) -> StudySession:
    session = await get_session_or_404(db, user_id, session_id)
    payload = data.model_dump(exclude_unset=True)
    if "is_completed" in payload:
        done = bool(payload.pop("is_completed"))
        session.is_completed = done
        session.completed_at = utcnow() if done else None
    for field, value in payload.items():
        setattr(session, field, value)
    await db.commit()
    await db.refresh(session)
    return session


async def delete_session(db: AsyncSession, user_id: UUID, session_id: UUID) -> None:
    await get_session_or_404(db, user_id, session_id)
    await schedule_service.clear_sessions(
        db, StudySession.id == session_id, StudySession.user_id == user_id
    )
    await db.commit()


async def bulk_complete(
    db: AsyncSession, user_id: UUID, session_ids: list[UUID], notes: Optional[str] = None
) -> int:
    """Complete the given sessions; ids owned by other users are ignored."""
    values = {"is_completed": True, "completed_at": utcnow()}
    if notes is not None:
        values["notes"] = notes
    result = await db.execute(
        update(StudySession)
        .where(StudySession.id.in_(session_ids), StudySession.user_id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("User %s completed %d sessions", user_id, result.rowcount)
    return result.rowcount or 0


async def bulk_delete(db: AsyncSession, user_id: UUID, session_ids: list[UUID]) -> int:
    deleted = await schedule_service.clear_sessions(
        db, StudySession.id.in_(session_ids), StudySession.user_id == user_id
    )
    await db.commit()
    logger.info("User %s deleted %d sessions", user_id, deleted)
    return deleted
