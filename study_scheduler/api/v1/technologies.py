from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from study_scheduler.api.deps import AdminUserDep, CurrentUserDep, DBSessionDep
from study_scheduler.schemas.technology import (
    SeedResult,
    SubtopicCreate,
    SubtopicRead,
    SubtopicUpdate,
    TechnologyCreate,
    TechnologyDetail,
    TechnologyRead,
    TechnologyStats,
    TechnologyUpdate,
    TechnologyWithHours,
)
from study_scheduler.services import technology_service as svc

router = APIRouter(prefix="/technologies", tags=["technologies"])


@router.get("", response_model=list[TechnologyWithHours])
async def list_technologies(
    db: DBSessionDep,
    current_user: CurrentUserDep,
    search: Optional[str] = Query(None, max_length=100),
    include_inactive: bool = False,
):
    return await svc.list_technologies(
        db, search=search, include_inactive=include_inactive and current_user.is_admin
    )


@router.get("/stats", response_model=TechnologyStats)
async def technology_stats(db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.technology_stats(db)


@router.post("/seed", response_model=SeedResult)
async def seed_technologies(db: DBSessionDep, admin: AdminUserDep):
    return await svc.seed_technologies(db)


# ---------- Subtopics ----------

@router.put("/subtopics/{subtopic_id}", response_model=SubtopicRead)
async def update_subtopic(
    subtopic_id: UUID, data: SubtopicUpdate, db: DBSessionDep, admin: AdminUserDep
):
    return await svc.update_subtopic(db, subtopic_id, data)


@router.delete("/subtopics/{subtopic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subtopic(subtopic_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    await svc.delete_subtopic(db, subtopic_id)
    return None


# ---------- Technologies ----------

@router.post("", response_model=TechnologyRead, status_code=status.HTTP_201_CREATED)
async def create_technology(data: TechnologyCreate, db: DBSessionDep, admin: AdminUserDep):
    return await svc.create_technology(db, data)


@router.get("/{technology_id}", response_model=TechnologyDetail)
async def get_technology(technology_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.get_technology_detail(db, technology_id)


@router.put("/{technology_id}", response_model=TechnologyRead)
async def update_technology(
    technology_id: UUID, data: TechnologyUpdate, db: DBSessionDep, admin: AdminUserDep
):
    return await svc.update_technology(db, technology_id, data)


@router.delete("/{technology_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_technology(technology_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    await svc.delete_technology(db, technology_id)
    return None


@router.put("/{technology_id}/toggle-status", response_model=TechnologyRead)
async def toggle_technology_status(technology_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    return await svc.toggle_technology_status(db, technology_id)


@router.get("/{technology_id}/subtopics", response_model=list[SubtopicRead])
async def list_subtopics(technology_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.list_subtopics(db, technology_id)


@router.post(
    "/{technology_id}/subtopics",
    response_model=SubtopicRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_subtopic(
    technology_id: UUID, data: SubtopicCreate, db: DBSessionDep, admin: AdminUserDep
):
    return await svc.create_subtopic(db, technology_id, data)
