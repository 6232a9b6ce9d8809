"""Organization service — orgs and their memberships."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization, OrgMember
from app.models.user import User
from app.schemas.organization import MemberUpdate, OrgCreate
from app.utils.paths import slugify

logger = logging.getLogger(__name__)


async def get_org(db: AsyncSession, org_id: str) -> Organization | None:
    return await db.get(Organization, org_id)


async def get_org_by_slug(db: AsyncSession, slug: str) -> Organization | None:
    result = await db.execute(select(Organization).where(Organization.slug == slug))
    return result.scalars().first()


async def create_org(db: AsyncSession, data: OrgCreate, owner: User) -> Organization:
    slug = data.slug or slugify(data.name) or "org"
    if await get_org_by_slug(db, slug):
        slug = f"{slug}-{uuid.uuid4().hex[:6]}"

    org = Organization(name=data.name, slug=slug)
    db.add(org)
    await db.flush()
    db.add(OrgMember(org_id=org.id, user_id=owner.id, role="owner"))
    await db.commit()
    await db.refresh(org)
    logger.info("Created org '%s' (%s) owned by %s", org.slug, org.id, owner.email)
    return org


async def get_membership(db: AsyncSession, org_id: str, user_id: str) -> OrgMember | None:
    stmt = select(OrgMember).where(OrgMember.org_id == org_id, OrgMember.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_member(db: AsyncSession, org_id: str, member_id: str) -> OrgMember | None:
    member = await db.get(OrgMember, member_id)
    if not member or member.org_id != org_id:
        return None
    return member


async def list_members(db: AsyncSession, org_id: str) -> list[OrgMember]:
    stmt = select(OrgMember).where(OrgMember.org_id == org_id).order_by(OrgMember.joined_at)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_memberships(db: AsyncSession, user_id: str) -> list[tuple[OrgMember, Organization]]:
    stmt = (
        select(OrgMember, Organization)
        .join(Organization, Organization.id == OrgMember.org_id)
        .where(OrgMember.user_id == user_id, OrgMember.status == "active")
        .order_by(Organization.name)
    )
    result = await db.execute(stmt)
    return [(member, org) for member, org in result.all()]


async def add_member(db: AsyncSession, org_id: str, user: User, role: str) -> OrgMember:
    member = OrgMember(org_id=org_id, user_id=user.id, role=role)
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member


async def count_owners(db: AsyncSession, org_id: str) -> int:
    stmt = select(func.count()).select_from(OrgMember).where(
        OrgMember.org_id == org_id, OrgMember.role == "owner", OrgMember.status == "active"
    )
    return (await db.execute(stmt)).scalar_one()


async def update_member(db: AsyncSession, member: OrgMember, data: MemberUpdate) -> OrgMember:
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(member, field, value)
    await db.commit()
    await db.refresh(member)
    return member
