"""Org API key management — values are write-only and returned masked."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.deps import require_org_admin
from app.models.api_key import ApiKey
from app.models.organization import OrgMember
from app.schemas.api_key import PROVIDER_IDS, ApiKeyResponse, ApiKeySet
from app.services import api_key_service
from app.utils.crypto import decrypt, mask

router = APIRouter()


def _to_response(api_key: ApiKey) -> ApiKeyResponse:
    try:
        masked = mask(decrypt(api_key.encrypted_value))
    except ValueError:
        masked = "****"
    return ApiKeyResponse(
        id=api_key.id,
        provider=api_key.provider,
        key_masked=masked,
        credential_type=api_key.credential_type,
        is_company_default=api_key.is_company_default,
        created_at=api_key.created_at,
    )


@router.get("/", response_model=list[ApiKeyResponse])
async def list_api_keys(
    admin: OrgMember = Depends(require_org_admin), db: AsyncSession = Depends(get_db)
):
    return [_to_response(k) for k in await api_key_service.list_api_keys(db, admin.org_id)]


@router.post("/", response_model=ApiKeyResponse, status_code=201)
async def set_api_key(
    data: ApiKeySet,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    if data.provider not in PROVIDER_IDS:
        raise HTTPException(status_code=400, detail=f"Unknown provider: {data.provider}")
    return _to_response(await api_key_service.set_api_key(db, admin.org_id, data))


@router.delete("/{key_id}", status_code=204)
async def delete_api_key(
    key_id: str,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    deleted = await api_key_service.delete_api_key(db, admin.org_id, key_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="API key not found")
