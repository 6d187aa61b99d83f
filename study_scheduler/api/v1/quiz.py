from uuid import UUID

from fastapi import APIRouter, status

from study_scheduler.api.deps import AdminUserDep, CurrentUserDep, DBSessionDep
from study_scheduler.schemas.question import (
    AnswerSubmit,
    PerformanceResponse,
    QuestionCreate,
    QuestionPublic,
    QuestionRead,
    SubmitResult,
)
from study_scheduler.services import question_service as svc

router = APIRouter(prefix="/quiz", tags=["quiz"])


@router.get("/subtopics/{subtopic_id}/questions", response_model=list[QuestionPublic])
async def list_questions(subtopic_id: UUID, db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.list_questions(db, subtopic_id)


@router.post(
    "/subtopics/{subtopic_id}/questions",
    response_model=QuestionRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_question(
    subtopic_id: UUID, data: QuestionCreate, db: DBSessionDep, admin: AdminUserDep
):
    return await svc.create_question(db, subtopic_id, data)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: UUID, db: DBSessionDep, admin: AdminUserDep):
    await svc.delete_question(db, question_id)
    return None


@router.post("/sessions/{session_id}/answers", response_model=SubmitResult)
async def submit_answers(
    session_id: UUID, data: AnswerSubmit, db: DBSessionDep, current_user: CurrentUserDep
):
    return await svc.submit_answers(db, current_user.id, session_id, data.answers)


@router.get("/performance", response_model=PerformanceResponse)
async def performance(db: DBSessionDep, current_user: CurrentUserDep):
    return await svc.performance(db, current_user.id)
