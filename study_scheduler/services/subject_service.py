from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from study_scheduler.models.subject import Subject, SubSubject
from study_scheduler.schemas.subject import (
    SubjectCreate,
    SubjectUpdate,
    SubSubjectCreate,
    SubSubjectUpdate,
)


# ---------- Subjects ----------

async def list_subjects(db: AsyncSession, user_id: UUID) -> list[Subject]:
    stmt = (
        select(Subject)
        .options(selectinload(Subject.sub_subjects))
        .where(Subject.user_id == user_id)
        .order_by(Subject.created_at.desc())
    )
    result = await db.scalars(stmt)
    return list(result.unique())


async def get_subject_or_404(db: AsyncSession, user_id: UUID, subject_id: UUID) -> Subject:
    stmt = (
        select(Subject)
        .options(selectinload(Subject.sub_subjects))
        .where(Subject.id == subject_id, Subject.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    subject = (await db.scalars(stmt)).first()
    if not subject:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


async def create_subject(db: AsyncSession, user_id: UUID, data: SubjectCreate) -> Subject:
    subject = Subject(
        user_id=user_id,
        title=data.title,
        color=data.color,
        sub_subjects=[SubSubject(title=s.title, difficulty=s.difficulty) for s in data.sub_subjects],
    )
    db.add(subject)
    await db.commit()
    return await get_subject_or_404(db, user_id, subject.id)


async def update_subject(
    db: AsyncSession, user_id: UUID, subject_id: UUID, data: SubjectUpdate
) -> Subject:
    subject = await get_subject_or_404(db, user_id, subject_id)
    payload = data.model_dump(exclude_unset=True)
    replacement = payload.pop("sub_subjects", None)
    for field, value in payload.items():
        setattr(subject, field, value)
    if replacement is not None:
        subject.sub_subjects = [SubSubject(**s) for s in replacement]
    await db.commit()
    return await get_subject_or_404(db, user_id, subject_id)


async def delete_subject(db: AsyncSession, user_id: UUID, subject_id: UUID) -> None:
    subject = await get_subject_or_404(db, user_id, subject_id)
    await db.delete(subject)
    await db.commit()


# ---------- Sub-subjects ----------

async def _get_sub_subject_or_404(db: AsyncSession, user_id: UUID, sub_subject_id: UUID) -> SubSubject:
    stmt = (
        select(SubSubject)
        .join(Subject, SubSubject.subject_id == Subject.id)
        .where(SubSubject.id == sub_subject_id, Subject.user_id == user_id)
    )
    sub = (await db.scalars(stmt)).first()
    if not sub:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sub-subject not found")
    return sub


async def list_sub_subjects(db: AsyncSession, user_id: UUID, subject_id: UUID) -> list[SubSubject]:
    subject = await get_subject_or_404(db, user_id, subject_id)
    return list(subject.sub_subjects)


async def create_sub_subject(
    db: AsyncSession, user_id: UUID, subject_id: UUID, data: SubSubjectCreate
) -> SubSubject:
    await get_subject_or_404(db, user_id, subject_id)
    sub = SubSubject(subject_id=subject_id, title=data.title, difficulty=data.difficulty)
    db.add(sub)
    await db.commit()
    await db.refresh(sub)
    return sub


async def update_sub_subject(
    db: AsyncSession, user_id: UUID, sub_subject_id: UUID, data: SubSubjectUpdate
) -> SubSubject:
    sub = await _get_sub_subject_or_404(db, user_id, sub_subject_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(sub, field, value)
    await db.commit()
    await db.refresh(sub)
    return sub


async def delete_sub_subject(db: AsyncSession, user_id: UUID, sub_subject_id: UUID) -> None:
    sub = await _get_sub_subject_or_404(db, user_id, sub_subject_id)
    await db.delete(sub)
    await db.commit()
