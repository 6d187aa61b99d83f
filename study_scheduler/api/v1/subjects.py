from uuid import UUID

from fastapi import APIRouter, status

from study_scheduler.api.deps import CurrentUserDep, DBSessionDep
from study_scheduler.schemas.subject import (
    SubjectCreate,
    SubjectRead,
    SubjectUpdate,
    SubSubjectCreate,
    SubSubjectRead,
    SubSubjectUpdate,
)
from study_scheduler.services import subject_service as svc

router = APIRouter(prefix="/subjects", tags=["subjects"])

# ---------- Sub-subjects ----------

@router.patch("/sub-subjects/{sub_subject_id}", response_model=SubSubjectRead)
async def update_sub_subject(
    sub_subject_id: UUID, data: SubSubjectUpdate, db: DBSessionDep, current_user: CurrentUserDep
):
    return await svc.update_sub_subject(db, current_user.id, sub_subject_id, data)


@router.delete("/sub-subjects/{sub_subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sub_subject(sub_subject_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    await svc.delete_sub_subject(db, current_user.id, sub_subject_id)
    return None

# ---------- Subjects ----------

@router.get("", response_model=list[SubjectRead])
async def list_subjects(db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.list_subjects(db, current_user.id)


@router.post("", response_model=SubjectRead, status_code=status.HTTP_201_CREATED)
async def create_subject(data: SubjectCreate, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.create_subject(db, current_user.id, data)


@router.get("/{subject_id}", response_model=SubjectRead)
async def get_subject(subject_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.get_subject_or_404(db, current_user.id, subject_id)


@router.patch("/{subject_id}", response_model=SubjectRead)
async def update_subject(
    subject_id: UUID, data: SubjectUpdate, db: DBSessionDep, current_user: CurrentUserDep
):
    return await svc.update_subject(db, current_user.id, subject_id, data)


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(subject_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    await svc.delete_subject(db, current_user.id, subject_id)
    return None


@router.get("/{subject_id}/sub-subjects", response_model=list[SubSubjectRead])
async def list_sub_subjects(subject_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.list_sub_subjects(db, current_user.id, subject_id)


@router.post(
    "/{subject_id}/sub-subjects",
    response_model=SubSubjectRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_sub_subject(
    subject_id: UUID, data: SubSubjectCreate, db: DBSessionDep, current_user: CurrentUserDep
):
    return await svc.create_sub_subject(db, current_user.id, subject_id, data)
