from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from study_scheduler.api.deps import CurrentUserDep, DBSessionDep
from study_scheduler.schemas.study_session import (
    BulkSessionRequest,
    BulkSessionResult,
    CalendarEvent,
    CompleteSessionRequest,
    StudySessionListResponse,
    StudySessionRead,
    StudySessionUpdate,
)
from study_scheduler.services import study_session_service as svc

router = APIRouter(prefix="/study-sessions", tags=["study-sessions"])


@router.get("", response_model=StudySessionListResponse)
async def list_sessions(
    db: DBSessionDep,
    current_user: CurrentUserDep,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    technology_id: Optional[UUID] = None,
    completed: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    return await svc.list_sessions(
        db, current_user.id, start_date, end_date, technology_id, completed, page, limit
    )


@router.get("/calendar", response_model=list[CalendarEvent])
async def calendar(
    db: DBSessionDep,
    current_user: CurrentUserDep,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    return await svc.calendar_events(db, current_user.id, start_date, end_date)


@router.post("/bulk-complete", response_model=BulkSessionResult)
async def bulk_complete(data: BulkSessionRequest, db: DBSessionDep, current_user: CurrentUserDep):
    affected = await svc.bulk_complete(db, current_user.id, data.session_ids, data.notes)
    return BulkSessionResult(message=f"{affected} sessions completed", affected=affected)


@router.post("/bulk-delete", response_model=BulkSessionResult)
async def bulk_delete(data: BulkSessionRequest, db: DBSessionDep, current_user: CurrentUserDep):
    affected = await svc.bulk_delete(db, current_user.id, data.session_ids)
    return BulkSessionResult(message=f"{affected} sessions deleted", affected=affected)


@router.put("/{session_id}/complete", response_model=StudySessionRead)
async def complete_session(
    session_id: UUID,
    db: DBSessionDep,
    current_user: CurrentUserDep,
    data: Optional[CompleteSessionRequest] = None,
):
    notes = data.notes if data else None
    return await svc.complete_session(db, current_user.id, session_id, notes)


@router.patch("/{session_id}", response_model=StudySessionRead)
async def update_session(
    session_id: UUID, data: StudySessionUpdate, db: DBSessionDep, current_user: CurrentUserDep
):
    return await svc.update_session(db, current_user.id, session_id, data)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    await svc.delete_session(db, current_user.id, session_id)
    return None
