import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from study_scheduler.db.base import utcnow
from study_scheduler.models.study_config import StudyConfiguration
from study_scheduler.models.study_session import StudySession
from study_scheduler.models.user import User
from study_scheduler.scheduling import (
    PersistenceError,
    SchedulingError,
    ValidationError,
    normalize_study_days,
    to_hours,
)
from study_scheduler.scheduling.resolver import dedupe_selection
from study_scheduler.schemas.study_config import (
    ActiveConfigResponse,
    OverallProgress,
    ScheduleStats,
    StudyConfigCreate,
    StudyConfigRead,
    StudyConfigUpdate,
    StudyDay,
    SubtopicProgress,
    TechnologyProgress,
    TechnologyProgressDetail,
)
from study_scheduler.services import schedule_service, technology_service

logger = logging.getLogger(__name__)


def _serialize_days(study_days: list[StudyDay]) -> list[dict]:
    # validates the weekly budget up front, including the all-zero case
    normalize_study_days([d.model_dump() for d in study_days])
    return [{"day": d.day, "hours": str(to_hours(d.hours))} for d in study_days]


def _weekly_hours(study_days: list[dict]) -> Decimal:
    return sum((to_hours(d["hours"]) for d in study_days), Decimal("0"))


def _rate(part, whole) -> float:
    return round(float(part) / float(whole) * 100, 2) if whole else 0.0


async def _get_config_or_404(db: AsyncSession, user_id: UUID, config_id: UUID) -> StudyConfiguration:
    config = await db.get(StudyConfiguration, config_id)
    if not config or config.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Study configuration not found"
        )
    return config


async def get_active_config(db: AsyncSession, user_id: UUID) -> Optional[StudyConfiguration]:
    stmt = (
        select(StudyConfiguration)
        .where(StudyConfiguration.user_id == user_id, StudyConfiguration.is_active.is_(True))
        .order_by(StudyConfiguration.created_at.desc())
    )
    return (await db.scalars(stmt)).first()


async def get_active_config_summary(db: AsyncSession, user_id: UUID) -> ActiveConfigResponse:
    config = await get_active_config(db, user_id)
    if config is None:
        return ActiveConfigResponse()
    in_config = StudySession.configuration_id == config.id
    return ActiveConfigResponse(
        configuration=StudyConfigRead.model_validate(config),
        total_sessions=await schedule_service.count_sessions(db, in_config),
        completed_sessions=await schedule_service.count_sessions(
            db, in_config, StudySession.is_completed.is_(True)
        ),
    )


async def create_config(
    db: AsyncSession, user: User, data: StudyConfigCreate
) -> tuple[StudyConfiguration, int]:
    """Activate a new configuration and, optionally, its schedule.

    Deactivating the previous configuration, inserting the new one and
    inserting its sessions commit together. The user row is locked first so
    concurrent creates for the same user serialize; the partial unique index
    on active configurations backs this up. Allocation, and with it the
    horizon check, only runs when a schedule is requested.
    """
    user_id = user.id
    study_days = _serialize_days(data.study_days)
    selection = [str(tech_id) for tech_id in dedupe_selection(data.selected_technologies)]

    try:
        work_items, allocations = await schedule_service.plan(
            db, data.start_date, study_days, selection, with_allocations=data.generate_schedule
        )
        if not work_items:
            raise ValidationError("None of the selected technologies has active subtopics")

        await schedule_service.lock_user(db, user_id)
        await db.execute(
            update(StudyConfiguration)
            .where(StudyConfiguration.user_id == user_id, StudyConfiguration.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

        config = StudyConfiguration(
            user_id=user_id,
            start_date=data.start_date,
            study_days=study_days,
            selected_technologies=selection,
            total_weekly_hours=_weekly_hours(study_days),
            total_selected_hours=sum((item.hours_required for item in work_items), Decimal("0")),
            is_active=True,
        )
        db.add(config)
        await db.flush()

        sessions = []
        if data.generate_schedule:
            sessions = schedule_service.build_sessions(user_id, config.id, allocations)
            db.add_all(sessions)
            await db.flush()
        await db.commit()
    except SchedulingError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Creating study configuration for user %s failed", user_id)
        raise PersistenceError("Failed to save the study configuration") from exc

    await db.refresh(config)
    logger.info(
        "Activated configuration %s for user %s with %d sessions",
        config.id,
        user_id,
        len(sessions),
    )
    return config, len(sessions)


async def update_config(
    db: AsyncSession, user_id: UUID, config_id: UUID, data: StudyConfigUpdate
) -> StudyConfiguration:
    """Update settings and totals. The schedule is left as is until regenerated."""
    config = await _get_config_or_404(db, user_id, config_id)

    if data.start_date is not None:
        config.start_date = data.start_date
    if data.study_days is not None:
        config.study_days = _serialize_days(data.study_days)
        config.total_weekly_hours = _weekly_hours(config.study_days)
    if data.selected_technologies is not None:
        selection = dedupe_selection(data.selected_technologies)
        technologies = await technology_service.load_catalog(db, selection)
        by_id = {tech.id: tech for tech in technologies}
        config.selected_technologies = [str(tech_id) for tech_id in selection]
        config.total_selected_hours = sum(
            (
                to_hours(sub.hours_required)
                for tech_id in selection
                if tech_id in by_id and by_id[tech_id].is_active
                for sub in by_id[tech_id].subtopics
                if sub.is_active
            ),
            Decimal("0"),
        )

    await db.commit()
    await db.refresh(config)
    return config


async def delete_config(db: AsyncSession, user_id: UUID, config_id: UUID) -> None:
    """Soft delete: the configuration is deactivated, its sessions stay."""
    config = await _get_config_or_404(db, user_id, config_id)
    config.is_active = False
    await db.commit()


async def reset_schedule(db: AsyncSession, user_id: UUID) -> dict:
    """Hard-delete every session of the user and deactivate their configurations."""
    try:
        deleted = await schedule_service.clear_sessions(db, StudySession.user_id == user_id)
        result = await db.execute(
            update(StudyConfiguration)
            .where(StudyConfiguration.user_id == user_id, StudyConfiguration.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        deactivated = result.rowcount or 0
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Resetting schedule for user %s failed", user_id)
        raise PersistenceError("Failed to reset the study schedule") from exc

    logger.info(
        "Reset for user %s: deleted %d sessions, deactivated %d configurations",
        user_id,
        deleted,
        deactivated,
    )
    return {
        "message": "Study schedule reset successfully",
        "deleted_sessions": deleted,
        "deactivated_configurations": deactivated,
        "reset_date": utcnow(),
    }


async def generate_schedule(db: AsyncSession, user_id: UUID, config_id: UUID) -> list[StudySession]:
    config = await _get_config_or_404(db, user_id, config_id)
    return await schedule_service.generate_schedule(db, user_id, config)


async def get_schedule(
    db: AsyncSession,
    user_id: UUID,
    config_id: UUID,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    completed: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
) -> dict:
    await _get_config_or_404(db, user_id, config_id)
    criteria = [StudySession.user_id == user_id, StudySession.configuration_id == config_id]
    if start_date:
        criteria.append(StudySession.scheduled_date >= start_date)
    if end_date:
        criteria.append(StudySession.scheduled_date <= end_date)
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


async def get_stats(db: AsyncSession, user_id: UUID, config_id: UUID) -> ScheduleStats:
    await _get_config_or_404(db, user_id, config_id)
    done = StudySession.is_completed.is_(True)
    stmt = select(
        func.count(StudySession.id),
        func.coalesce(func.sum(case((done, 1), else_=0)), 0),
        func.coalesce(func.sum(StudySession.scheduled_hours), 0),
        func.coalesce(func.sum(case((done, StudySession.scheduled_hours), else_=0)), 0),
        func.min(StudySession.scheduled_date),
        func.max(StudySession.scheduled_date),
    ).where(StudySession.user_id == user_id, StudySession.configuration_id == config_id)
    total, completed, hours, completed_hours, first_day, last_day = (await db.execute(stmt)).one()

    return ScheduleStats(
        configuration_id=config_id,
        total_sessions=total,
        completed_sessions=completed,
        pending_sessions=total - completed,
        total_hours=float(hours),
        completed_hours=float(completed_hours),
        completion_rate=_rate(completed, total),
        first_session_date=first_day,
        last_session_date=last_day,
    )


# ---------- Progress ----------

def _tally(sessions) -> dict:
    total_hours = sum((to_hours(s.scheduled_hours) for s in sessions), Decimal("0"))
    completed = [s for s in sessions if s.is_completed]
    completed_hours = sum((to_hours(s.scheduled_hours) for s in completed), Decimal("0"))
    return {
        "total_sessions": len(sessions),
        "completed_sessions": len(completed),
        "total_hours": float(total_hours),
        "completed_hours": float(completed_hours),
    }


async def _active_sessions(db: AsyncSession, user_id: UUID) -> list[StudySession]:
    config = await get_active_config(db, user_id)
    if config is None:
        return []
    return await schedule_service.list_sessions(db, user_id, config.id)


def _technology_progress(technology_id: UUID, sessions) -> dict:
    tally = _tally(sessions)
    return {
        "technology_id": technology_id,
        "technology_name": sessions[0].technology_name if sessions else "",
        **tally,
        "completion_percentage": _rate(tally["completed_hours"], tally["total_hours"]),
    }


async def get_progress(db: AsyncSession, user_id: UUID) -> OverallProgress:
    sessions = await _active_sessions(db, user_id)
    by_technology: "OrderedDict[UUID, list]" = OrderedDict()
    for session in sessions:
        by_technology.setdefault(session.technology_id, []).append(session)

    tally = _tally(sessions)
    return OverallProgress(
        **tally,
        completion_percentage=_rate(tally["completed_hours"], tally["total_hours"]),
        technologies=[
            TechnologyProgress(**_technology_progress(tech_id, group))
            for tech_id, group in by_technology.items()
        ],
    )


async def get_technology_progress(
    db: AsyncSession, user_id: UUID, technology_id: UUID
) -> TechnologyProgressDetail:
    sessions = [
        s for s in await _active_sessions(db, user_id) if s.technology_id == technology_id
    ]
    if not sessions:
        tech = await technology_service.get_technology_or_404(db, technology_id, active_only=False)
        return TechnologyProgressDetail(
            technology_id=technology_id,
            technology_name=tech.name,
            total_sessions=0,
            completed_sessions=0,
            total_hours=0,
            completed_hours=0,
            completion_percentage=0,
        )

    by_subtopic: "OrderedDict[UUID, list]" = OrderedDict()
    for session in sessions:
        by_subtopic.setdefault(session.subtopic_id, []).append(session)

    return TechnologyProgressDetail(
        **_technology_progress(technology_id, sessions),
        subtopics=[
            SubtopicProgress(
                subtopic_id=subtopic_id,
                subtopic_name=group[0].subtopic_name,
                difficulty_level=group[0].difficulty_level,
                **_tally(group),
            )
            for subtopic_id, group in by_subtopic.items()
        ],
    )
