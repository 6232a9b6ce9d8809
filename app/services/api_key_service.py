"""API key service — encrypted provider credentials per organization."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.api_key import ApiKey
from app.schemas.api_key import ApiKeySet
from app.utils.crypto import decrypt, encrypt

logger = logging.getLogger(__name__)


async def list_api_keys(db: AsyncSession, org_id: str) -> list[ApiKey]:
    stmt = select(ApiKey).where(ApiKey.org_id == org_id).order_by(ApiKey.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def set_api_key(db: AsyncSession, org_id: str, data: ApiKeySet) -> ApiKey:
    """Store *data* as the org's default key for its provider, replacing any previous one."""
    await db.execute(
        delete(ApiKey).where(
            ApiKey.org_id == org_id,
            ApiKey.provider == data.provider,
            ApiKey.is_company_default.is_(True),
        )
    )
    api_key = ApiKey(
        org_id=org_id,
        provider=data.provider,
        encrypted_value=encrypt(data.key),
        credential_type=data.credential_type,
        is_company_default=True,
    )
    db.add(api_key)
    await db.commit()
    await db.refresh(api_key)
    logger.info("Set %s %s for org %s", data.provider, data.credential_type, org_id)
    return api_key


async def delete_api_key(db: AsyncSession, org_id: str, key_id: str) -> bool:
    api_key = await db.get(ApiKey, key_id)
    if not api_key or api_key.org_id != org_id:
        return False

    await db.delete(api_key)
    await db.commit()
    return True


async def get_decrypted_keys(db: AsyncSession, org_id: str) -> list[tuple[ApiKey, str]]:
    """Return (row, plaintext) for every org default (internal use only — never expose via API)."""
    stmt = select(ApiKey).where(ApiKey.org_id == org_id, ApiKey.is_company_default.is_(True))
    result = await db.execute(stmt)
    decrypted: list[tuple[ApiKey, str]] = []
    for api_key in result.scalars().all():
        try:
            decrypted.append((api_key, decrypt(api_key.encrypted_value)))
        except ValueError as exc:
            logger.warning("Skipping %s key %s: %s", api_key.provider, api_key.id, exc)
    return decrypted
