"""User service — identities mirrored from the upstream sign-in flow."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.user import UserSync


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalars().first()


async def sync_user(db: AsyncSession, data: UserSync) -> User:
    """Create or refresh a user on sign-in and record the login time."""
    email = data.email.strip().lower()
    user = await get_user_by_email(db, email)
    if not user:
        user = User(email=email)
        db.add(user)

    if data.name is not None:
        user.name = data.name
    if data.avatar_url is not None:
        user.avatar_url = data.avatar_url
    user.last_login = datetime.now(timezone.utc).replace(tzinfo=None)

    await db.commit()
    await db.refresh(user)
    return user
