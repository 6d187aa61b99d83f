import logging
from collections import OrderedDict
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from study_scheduler.db.base import utcnow
from study_scheduler.models.question import Question, SessionAnswer
from study_scheduler.models.study_session import StudySession
from study_scheduler.schemas.question import (
    AnswerItem,
    GradedAnswer,
    PerformanceResponse,
    QuestionCreate,
    SubmitResult,
    TechnologyPerformance,
)
from study_scheduler.services import study_session_service, technology_service

logger = logging.getLogger(__name__)


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


async def list_questions(db: AsyncSession, subtopic_id: UUID) -> list[Question]:
    await technology_service.get_active_subtopic_or_404(db, subtopic_id)
    stmt = (
        select(Question)
        .where(Question.subtopic_id == subtopic_id)
        .order_by(Question.created_at, Question.id)
    )
    return list((await db.scalars(stmt)).all())


async def create_question(db: AsyncSession, subtopic_id: UUID, data: QuestionCreate) -> Question:
    await technology_service.get_active_subtopic_or_404(db, subtopic_id)
    question = Question(subtopic_id=subtopic_id, **data.model_dump())
    db.add(question)
    await db.commit()
    await db.refresh(question)
    return question


async def delete_question(db: AsyncSession, question_id: UUID) -> None:
    question = await db.get(Question, question_id)
    if not question:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    await db.execute(delete(SessionAnswer).where(SessionAnswer.question_id == question_id))
    await db.delete(question)
    await db.commit()


async def submit_answers(
    db: AsyncSession, user_id: UUID, session_id: UUID, answers: list[AnswerItem]
) -> SubmitResult:
    """Grade a quiz for a session and mark the session complete.

    A new submission replaces any earlier one for the same session.
    """
    session = await study_session_service.get_session_or_404(db, user_id, session_id)

    question_ids = [answer.question_id for answer in answers]
    if len(set(question_ids)) != len(question_ids):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Each question may be answered once"
        )
    questions = {
        q.id: q
        for q in (
            await db.scalars(
                select(Question).where(
                    Question.id.in_(question_ids), Question.subtopic_id == session.subtopic_id
                )
            )
        ).all()
    }
    missing = [str(qid) for qid in question_ids if qid not in questions]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Questions not found for this session: {', '.join(missing)}",
        )

    graded = []
    for answer in answers:
        question = questions[answer.question_id]
        graded.append(
            GradedAnswer(
                question_id=question.id,
                selected_answer=answer.selected_answer,
                correct_answer=question.correct_answer,
                is_correct=answer.selected_answer == question.correct_answer,
                explanation=question.explanation,
            )
        )
    correct = sum(1 for g in graded if g.is_correct)

    await db.execute(delete(SessionAnswer).where(SessionAnswer.study_session_id == session.id))
    db.add_all(
        SessionAnswer(
            study_session_id=session.id,
            question_id=g.question_id,
            selected_answer=g.selected_answer,
            is_correct=g.is_correct,
        )
        for g in graded
    )
    session.questions_total = len(graded)
    session.questions_correct = correct
    session.is_completed = True
    session.completed_at = utcnow()
    await db.commit()

    logger.info("Session %s graded: %d/%d", session_id, correct, len(graded))
    return SubmitResult(
        session_id=session_id,
        questions_total=len(graded),
        questions_correct=correct,
        score_percentage=_rate(correct, len(graded)),
        answers=graded,
    )


async def performance(db: AsyncSession, user_id: UUID) -> PerformanceResponse:
    sessions = (
        await db.scalars(
            select(StudySession)
            .where(StudySession.user_id == user_id)
            .order_by(StudySession.scheduled_date)
        )
    ).unique().all()

    total = len(sessions)
    completed = sum(1 for s in sessions if s.is_completed)
    questions = sum(s.questions_total or 0 for s in sessions)
    correct = sum(s.questions_correct or 0 for s in sessions)

    per_technology: "OrderedDict[UUID, dict]" = OrderedDict()
    for s in sessions:
        stats = per_technology.setdefault(
            s.technology_id,
            {
                "technology_id": s.technology_id,
                "technology_name": s.technology_name or "",
                "sessions_completed": 0,
                "questions_total": 0,
                "questions_correct": 0,
            },
        )
        stats["sessions_completed"] += 1 if s.is_completed else 0
        stats["questions_total"] += s.questions_total or 0
        stats["questions_correct"] += s.questions_correct or 0

    return PerformanceResponse(
        total_sessions=total,
        completed_sessions=completed,
        completion_rate=_rate(completed, total),
        total_questions=questions,
        correct_answers=correct,
        success_rate=_rate(correct, questions),
        technologies=[
            TechnologyPerformance(
                **stats, success_rate=_rate(stats["questions_correct"], stats["questions_total"])
            )
            for stats in per_technology.values()
        ],
    )
