import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from study_scheduler.models.technology import Subtopic, Technology
from study_scheduler.schemas.technology import (
    SubtopicCreate,
    SubtopicUpdate,
    SubtopicRead,
    TechnologyCreate,
    TechnologyDetail,
    TechnologyUpdate,
    TechnologyWithHours,
)

logger = logging.getLogger(__name__)

# name, description, icon, rank, [(subtopic, hours, difficulty)]
SEED_TECHNOLOGIES = [
    ("HTML", "Markup language for structuring web pages", "Globe", 1, [
        ("Document structure", "2", "beginner"),
        ("Semantic elements", "3", "beginner"),
        ("Forms and validation", "3", "intermediate"),
        ("Accessibility", "2", "intermediate"),
    ]),
    ("CSS", "Style language for web page design and layout", "Palette", 2, [
        ("Selectors and cascade", "3", "beginner"),
        ("Box model", "2", "beginner"),
        ("Flexbox and grid", "5", "intermediate"),
        ("Responsive design", "4", "intermediate"),
        ("Animations", "3", "advanced"),
    ]),
    ("JavaScript", "Programming language for interactive web development", "Code", 3, [
        ("Syntax and types", "4", "beginner"),
        ("Functions and scope", "5", "intermediate"),
        ("DOM manipulation", "4", "intermediate"),
        ("Async and promises", "6", "advanced"),
    ]),
    ("React", "JavaScript library for building user interfaces", "Code", 4, [
        ("Components and JSX", "4", "beginner"),
        ("State and props", "5", "intermediate"),
        ("Hooks", "6", "advanced"),
    ]),
    ("Node.js", "JavaScript runtime for backend development", "Server", 4, [
        ("Modules and npm", "3", "beginner"),
        ("HTTP servers", "5", "intermediate"),
        ("Streams and events", "5", "advanced"),
    ]),
    ("Python", "Versatile general purpose programming language", "Code", 3, [
        ("Syntax and data types", "4", "beginner"),
        ("Functions and modules", "4", "beginner"),
        ("Object oriented Python", "5", "intermediate"),
        ("Async IO", "5", "advanced"),
    ]),
    ("Security", "Security concepts and practices for developers", "Shield", 6, [
        ("OWASP Top 10", "4", "intermediate"),
        ("Authentication and sessions", "4", "intermediate"),
        ("Cryptography basics", "5", "advanced"),
    ]),
    ("Data", "Managing and querying data and databases", "Database", 5, [
        ("Relational modelling", "4", "beginner"),
        ("SQL queries", "5", "intermediate"),
        ("Indexes and performance", "4", "advanced"),
    ]),
    ("Cloud", "Cloud computing and managed services", "Cloud", 7, [
        ("Cloud fundamentals", "3", "beginner"),
        ("Containers", "5", "intermediate"),
        ("Infrastructure as code", "5", "advanced"),
    ]),
]


def _with_hours(tech: Technology) -> TechnologyWithHours:
    active = [sub for sub in tech.subtopics if sub.is_active]
    out = TechnologyWithHours.model_validate(tech)
    out.total_hours = float(sum((sub.hours_required for sub in active), Decimal("0")))
    out.subtopics_count = len(active)
    return out


# ---------- Technologies ----------

async def list_technologies(
    db: AsyncSession, search: Optional[str] = None, include_inactive: bool = False
) -> list[TechnologyWithHours]:
    stmt = select(Technology).options(selectinload(Technology.subtopics)).order_by(Technology.name)
    if not include_inactive:
        stmt = stmt.where(Technology.is_active.is_(True))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Technology.name.ilike(pattern), Technology.description.ilike(pattern)))
    result = await db.scalars(stmt)
    return [_with_hours(tech) for tech in result.unique()]


async def load_catalog(db: AsyncSession, technology_ids: list[UUID]) -> list[Technology]:
    """Technologies with their subtopics, for the schedule resolver."""
    if not technology_ids:
        return []
    stmt = (
        select(Technology)
        .options(selectinload(Technology.subtopics))
        .where(Technology.id.in_(technology_ids))
    )
    result = await db.scalars(stmt)
    return list(result.unique())


async def get_technology_or_404(
    db: AsyncSession, technology_id: UUID, active_only: bool = True
) -> Technology:
    stmt = (
        select(Technology)
        .options(selectinload(Technology.subtopics))
        .where(Technology.id == technology_id)
    )
    tech = (await db.scalars(stmt)).first()
    if not tech or (active_only and not tech.is_active):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Technology not found")
    return tech


async def get_technology_detail(db: AsyncSession, technology_id: UUID) -> TechnologyDetail:
    tech = await get_technology_or_404(db, technology_id)
    return TechnologyDetail(
        **_with_hours(tech).model_dump(),
        subtopics=[SubtopicRead.model_validate(sub) for sub in tech.subtopics if sub.is_active],
    )


async def create_technology(db: AsyncSession, data: TechnologyCreate) -> Technology:
    existing = await db.scalar(select(Technology).where(Technology.name == data.name))
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Technology already exists")
    tech = Technology(**data.model_dump(), is_active=True)
    db.add(tech)
    await db.commit()
    await db.refresh(tech)
    logger.info("Created technology %s", tech.name)
    return tech


async def update_technology(db: AsyncSession, technology_id: UUID, data: TechnologyUpdate) -> Technology:
    tech = await get_technology_or_404(db, technology_id, active_only=False)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(tech, field, value)
    await db.commit()
    await db.refresh(tech)
    return tech


async def delete_technology(db: AsyncSession, technology_id: UUID) -> None:
    """Soft delete; existing sessions keep pointing at the row."""
    tech = await get_technology_or_404(db, technology_id, active_only=False)
    tech.is_active = False
    await db.commit()


async def toggle_technology_status(db: AsyncSession, technology_id: UUID) -> Technology:
    tech = await get_technology_or_404(db, technology_id, active_only=False)
    tech.is_active = not tech.is_active
    await db.commit()
    await db.refresh(tech)
    return tech


async def technology_stats(db: AsyncSession) -> dict:
    techs = await list_technologies(db, include_inactive=True)
    total = len(techs)
    total_hours = sum(t.total_hours for t in techs)
    return {
        "total_technologies": total,
        "active_technologies": sum(1 for t in techs if t.is_active),
        "total_hours": total_hours,
        "total_subtopics": sum(t.subtopics_count for t in techs),
        "average_hours_per_technology": round(total_hours / total) if total else 0,
    }


async def seed_technologies(db: AsyncSession) -> dict:
    """Insert the default catalog, updating rows that already exist by name."""
    results = []
    for name, description, icon, rank, subtopics in SEED_TECHNOLOGIES:
        tech = (
            await db.scalars(
                select(Technology)
                .options(selectinload(Technology.subtopics))
                .where(Technology.name == name)
            )
        ).first()
        if tech is None:
            tech = Technology(name=name, is_active=True, subtopics=[])
            db.add(tech)
        tech.description = description
        tech.icon_name = icon
        tech.complexity_rank = rank

        existing = {sub.name for sub in tech.subtopics}
        for index, (sub_name, hours, difficulty) in enumerate(subtopics):
            if sub_name in existing:
                continue
            tech.subtopics.append(
                Subtopic(
                    name=sub_name,
                    hours_required=Decimal(hours),
                    difficulty_level=difficulty,
                    order_index=index,
                    is_active=True,
                )
            )
        results.append(tech)

    await db.commit()
    for tech in results:
        await db.refresh(tech)
    logger.info("Seeded %d technologies", len(results))
    return {
        "message": "Technologies seeded successfully",
        "count": len(results),
        "technologies": results,
    }


# ---------- Subtopics ----------

async def list_subtopics(db: AsyncSession, technology_id: UUID) -> list[Subtopic]:
    await get_technology_or_404(db, technology_id)
    stmt = (
        select(Subtopic)
        .where(Subtopic.technology_id == technology_id, Subtopic.is_active.is_(True))
        .order_by(Subtopic.order_index, Subtopic.name)
    )
    return list((await db.scalars(stmt)).all())


async def _get_subtopic_or_404(db: AsyncSession, subtopic_id: UUID) -> Subtopic:
    subtopic = await db.get(Subtopic, subtopic_id)
    if not subtopic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subtopic not found")
    return subtopic


async def get_active_subtopic_or_404(db: AsyncSession, subtopic_id: UUID) -> Subtopic:
    subtopic = await _get_subtopic_or_404(db, subtopic_id)
    if not subtopic.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subtopic not found")
    return subtopic


async def create_subtopic(db: AsyncSession, technology_id: UUID, data: SubtopicCreate) -> Subtopic:
    await get_technology_or_404(db, technology_id)
    subtopic = Subtopic(technology_id=technology_id, is_active=True, **data.model_dump())
    db.add(subtopic)
    await db.commit()
    await db.refresh(subtopic)
    return subtopic


async def update_subtopic(db: AsyncSession, subtopic_id: UUID, data: SubtopicUpdate) -> Subtopic:
    subtopic = await _get_subtopic_or_404(db, subtopic_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(subtopic, field, value)
    await db.commit()
    await db.refresh(subtopic)
    return subtopic


async def delete_subtopic(db: AsyncSession, subtopic_id: UUID) -> None:
    subtopic = await _get_subtopic_or_404(db, subtopic_id)
    subtopic.is_active = False
    await db.commit()

