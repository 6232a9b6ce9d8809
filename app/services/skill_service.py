"""Skill service — registry metadata and per-user toggle state."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.skill import Skill, UserSkill
from app.schemas.skill import ImportEntry, SkillCreate, SkillUpdate
from app.utils.paths import last_path_segment

logger = logging.getLogger(__name__)


async def list_skills(db: AsyncSession, org_id: str | None) -> list[Skill]:
    stmt = select(Skill).where(Skill.org_id == org_id).order_by(Skill.created_at.desc(), Skill.name)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_skill(db: AsyncSession, org_id: str | None, skill_id: str) -> Skill | None:
    skill = await db.get(Skill, skill_id)
    if not skill or skill.org_id != org_id:
        return None
    return skill


async def find_by_source(
    db: AsyncSession, org_id: str | None, git_url: str, git_path: str
) -> Skill | None:
    stmt = select(Skill).where(
        Skill.org_id == org_id, Skill.git_url == git_url, Skill.git_path == git_path
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def create_skill(db: AsyncSession, org_id: str | None, data: SkillCreate) -> Skill:
    skill = Skill(
        name=data.name,
        description=data.description,
        type=data.type,
        path=last_path_segment(data.git_path),
        git_url=data.git_url,
        git_path=data.git_path,
        org_id=org_id,
    )
    db.add(skill)
    await db.commit()
    await db.refresh(skill)
    logger.info("Created skill '%s' (%s) in org %s", skill.name, skill.id, org_id)
    return skill


async def import_skills(
    db: AsyncSession, org_id: str | None, git_url: str, entries: list[ImportEntry]
) -> list[Skill]:
    """Create one optional skill per scanned entry, skipping known sources."""
    created: list[Skill] = []
    seen: set[str] = set()
    for entry in entries:
        if entry.git_path in seen or await find_by_source(db, org_id, git_url, entry.git_path):
            logger.debug("Skipping duplicate import %s:%s", git_url, entry.git_path)
            continue
        seen.add(entry.git_path)
        skill = Skill(
            name=entry.name,
            description=entry.description,
            type="optional",
            path=last_path_segment(entry.git_path),
            git_url=git_url,
            git_path=entry.git_path,
            org_id=org_id,
        )
        db.add(skill)
        created.append(skill)

    await db.commit()
    for skill in created:
        await db.refresh(skill)
    logger.info("Imported %d skill(s) from %s into org %s", len(created), git_url, org_id)
    return created


async def update_skill(
    db: AsyncSession, org_id: str | None, skill_id: str, data: SkillUpdate
) -> Skill | None:
    skill = await get_skill(db, org_id, skill_id)
    if not skill:
        return None

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(skill, field, value)
    if data.git_path is not None:
        skill.path = last_path_segment(data.git_path)

    await db.commit()
    await db.refresh(skill)
    return skill


async def delete_skill(db: AsyncSession, org_id: str | None, skill_id: str) -> bool:
    """Delete a skill together with every toggle row that references it."""
    skill = await get_skill(db, org_id, skill_id)
    if not skill:
        return False

    await db.execute(delete(UserSkill).where(UserSkill.skill_id == skill.id))
    await db.delete(skill)
    await db.commit()
    return True


# ── Member toggles ───────────────────────────────────────────────────


async def list_enabled_skills(db: AsyncSession, org_id: str | None) -> list[Skill]:
    stmt = (
        select(Skill)
        .where(Skill.org_id == org_id, Skill.enabled.is_(True))
        .order_by(Skill.type, Skill.name)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_assigned_ids(db: AsyncSession, user_id: str) -> set[str]:
    stmt = select(UserSkill.skill_id).where(
        UserSkill.user_id == user_id, UserSkill.enabled.is_(True)
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())


def is_assigned(skill: Skill, assigned_ids: set[str]) -> bool:
    # Mandatory skills are always on, whatever the stored toggle says
    return skill.type == "mandatory" or skill.id in assigned_ids


async def list_user_skills(
    db: AsyncSession, org_id: str | None, user_id: str
) -> list[tuple[Skill, bool]]:
    """All enabled org skills paired with whether *user_id* has them."""
    skills = await list_enabled_skills(db, org_id)
    assigned_ids = await get_assigned_ids(db, user_id)
    return [(skill, is_assigned(skill, assigned_ids)) for skill in skills]


async def effective_skills(db: AsyncSession, org_id: str | None, user_id: str) -> list[Skill]:
    """The skills that should be installed into *user_id*'s gateway."""
    return [skill for skill, assigned in await list_user_skills(db, org_id, user_id) if assigned]


async def set_user_skills(db: AsyncSession, user_id: str, toggles: dict[str, bool]) -> None:
    """Upsert toggle rows for *user_id* in a single transaction.

    Callers validate that every skill exists, is enabled and is not
    mandatory before calling this.
    """
    for skill_id, enabled in toggles.items():
        row = await db.get(UserSkill, (user_id, skill_id))
        if row:
            row.enabled = enabled
        else:
            db.add(UserSkill(user_id=user_id, skill_id=skill_id, enabled=enabled))
    await db.commit()
