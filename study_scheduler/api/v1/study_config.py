from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from study_scheduler.api.deps import CurrentUserDep, DBSessionDep, SubscribedUserDep
from study_scheduler.schemas.study_config import (
    ActiveConfigResponse,
    GenerateScheduleResponse,
    OverallProgress,
    ResetResponse,
    ScheduleListResponse,
    ScheduleStats,
    StudyConfigCreate,
    StudyConfigCreateResponse,
    StudyConfigRead,
    StudyConfigUpdate,
    TechnologyProgressDetail,
)
from study_scheduler.schemas.study_session import StudySessionRead
from study_scheduler.services import study_config_service as svc

router = APIRouter(prefix="/study-config", tags=["study-config"])


@router.get("", response_model=ActiveConfigResponse)
async def get_active_config(db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.get_active_config_summary(db, current_user.id)


@router.post("", response_model=StudyConfigCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_config(data: StudyConfigCreate, db: DBSessionDep, current_user: SubscribedUserDep):
    config, sessions_created = await svc.create_config(db, current_user, data)
    return StudyConfigCreateResponse(
        message="Study configuration created",
        configuration=StudyConfigRead.model_validate(config),
        sessions_created=sessions_created,
    )


@router.post("/reset", response_model=ResetResponse)
async def reset_schedule(db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.reset_schedule(db, current_user.id)


# ---------- Progress ----------

@router.get("/progress", response_model=OverallProgress)
async def get_progress(db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.get_progress(db, current_user.id)


@router.get("/progress/technologies/{technology_id}", response_model=TechnologyProgressDetail)
async def get_technology_progress(
    technology_id: UUID, db: DBSessionDep, current_user: CurrentUserDep
):
    return await svc.get_technology_progress(db, current_user.id, technology_id)


# ---------- Single configuration ----------

@router.put("/{config_id}", response_model=StudyConfigRead)
async def update_config(
    config_id: UUID, data: StudyConfigUpdate, db: DBSessionDep, current_user: CurrentUserDep
):
    return await svc.update_config(db, current_user.id, config_id, data)


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_config(config_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    await svc.delete_config(db, current_user.id, config_id)
    return None


@router.post("/{config_id}/generate-schedule", response_model=GenerateScheduleResponse)
async def generate_schedule(config_id: UUID, db: DBSessionDep, current_user: SubscribedUserDep):
    user_id = current_user.id
    sessions = await svc.generate_schedule(db, user_id, config_id)
    return GenerateScheduleResponse(
        message="Study schedule generated",
        sessions_created=len(sessions),
        schedule=[StudySessionRead.model_validate(s) for s in sessions],
    )


@router.get("/{config_id}/schedule", response_model=ScheduleListResponse)
async def get_schedule(
    config_id: UUID,
    db: DBSessionDep,
    current_user: CurrentUserDep,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    completed: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    return await svc.get_schedule(
        db, current_user.id, config_id, start_date, end_date, completed, page, limit
    )


@router.get("/{config_id}/stats", response_model=ScheduleStats)
async def get_stats(config_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.get_stats(db, current_user.id, config_id)
