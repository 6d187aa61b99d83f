"""Schedule generation: resolve, allocate and persist study sessions.

Everything that touches the database for a single generation happens inside
one transaction. Planning (resolver + allocator) runs before the first write,
so validation and horizon errors never leave partial rows behind; a database
failure rolls back and surfaces as ``PersistenceError``.
"""
import logging
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from study_scheduler.core.config import get_settings
from study_scheduler.models.question import SessionAnswer
from study_scheduler.models.study_config import StudyConfiguration
from study_scheduler.models.study_session import StudySession
from study_scheduler.models.user import User
from study_scheduler.scheduling import (
    Allocation,
    PersistenceError,
    SchedulingError,
    ValidationError,
    WorkItem,
    allocate,
    resolve_work_items,
)
from study_scheduler.scheduling.resolver import dedupe_selection
from study_scheduler.services import technology_service

logger = logging.getLogger(__name__)


async def plan(
    db: AsyncSession,
    start_date: date,
    study_days,
    selected_technologies: Sequence,
    with_allocations: bool = True,
) -> tuple[list[WorkItem], list[Allocation]]:
    """Resolve the selection against the catalog and allocate it. No writes.

    With ``with_allocations=False`` only the work items are resolved and the
    allocation list is empty.
    """
    selection = dedupe_selection(selected_technologies)
    technologies = await technology_service.load_catalog(db, selection)
    work_items = resolve_work_items(selection, technologies)
    if not with_allocations:
        return work_items, []
    allocations = allocate(
        work_items,
        start_date,
        study_days,
        max_horizon_days=get_settings().SCHEDULE_MAX_HORIZON_DAYS,
    )
    return work_items, allocations


async def lock_user(db: AsyncSession, user_id: UUID) -> None:
    await db.execute(select(User.id).where(User.id == user_id).with_for_update())


def build_sessions(
    user_id: UUID, configuration_id: UUID, allocations: Sequence[Allocation]
) -> list[StudySession]:
    return [
        StudySession(
            user_id=user_id,
            configuration_id=configuration_id,
            technology_id=alloc.item.technology_id,
            subtopic_id=alloc.item.subtopic_id,
            scheduled_date=alloc.scheduled_date,
            scheduled_hours=alloc.hours,
            is_completed=False,
        )
        for alloc in allocations
    ]


async def clear_sessions(db: AsyncSession, *criteria) -> int:
    """Delete sessions matching ``criteria`` along with their quiz answers."""
    session_ids = select(StudySession.id).where(*criteria)
    await db.execute(
        delete(SessionAnswer)
        .where(SessionAnswer.study_session_id.in_(session_ids))
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(
        delete(StudySession).where(*criteria).execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def list_sessions(
    db: AsyncSession,
    user_id: UUID,
    configuration_id: Optional[UUID] = None,
) -> list[StudySession]:
    stmt = (
        select(StudySession)
        .where(StudySession.user_id == user_id)
        .order_by(StudySession.scheduled_date, StudySession.created_at)
        .execution_options(populate_existing=True)
    )
    if configuration_id is not None:
        stmt = stmt.where(StudySession.configuration_id == configuration_id)
    result = await db.scalars(stmt)
    return list(result.unique())


async def count_sessions(db: AsyncSession, *criteria) -> int:
    return await db.scalar(select(func.count(StudySession.id)).where(*criteria)) or 0


async def generate_schedule(
    db: AsyncSession, user_id: UUID, configuration: StudyConfiguration
) -> list[StudySession]:
    """Replace the configuration's sessions with a freshly generated schedule.

    Safe to call repeatedly: prior sessions for the configuration are cleared
    in the same transaction that inserts the new ones. The user row is locked
    (the same lock ``create_config`` takes) and the configuration is re-read
    under it, so regenerations and creates for one user serialize.
    """
    if configuration.user_id != user_id:
        raise ValidationError("Configuration does not belong to this user")

    config_id = configuration.id

    try:
        await lock_user(db, user_id)
        configuration = await db.scalar(
            select(StudyConfiguration)
            .where(StudyConfiguration.id == config_id)
            .execution_options(populate_existing=True)
        )
        if configuration is None or not configuration.is_active:
            raise ValidationError("Only the active configuration can be scheduled")

        _, allocations = await plan(
            db,
            configuration.start_date,
            configuration.study_days,
            configuration.selected_technologies,
        )
        cleared = await clear_sessions(db, StudySession.configuration_id == config_id)
        sessions = build_sessions(user_id, config_id, allocations)
        db.add_all(sessions)
        await db.flush()
        await db.commit()
    except SchedulingError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Persisting schedule for configuration %s failed", config_id)
        raise PersistenceError("Failed to save the generated schedule") from exc

    logger.info(
        "Generated %d sessions for configuration %s (replaced %d)",
        len(sessions),
        config_id,
        cleared,
    )
    return await list_sessions(db, user_id, config_id)
