"""Organization and membership endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.deps import get_current_user, get_org_member, require_org_admin
from app.models.organization import OrgMember
from app.models.user import User
from app.schemas.organization import (
    MemberAdd,
    MemberResponse,
    MemberUpdate,
    OrgCreate,
    OrgResponse,
)
from app.services import org_service, user_service

router = APIRouter()


def _member_response(member: OrgMember, user: User | None) -> MemberResponse:
    resp = MemberResponse.model_validate(member)
    if user:
        resp.email = user.email
        resp.name = user.name
    return resp


@router.post("/", response_model=OrgResponse, status_code=201)
async def create_org(
    data: OrgCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await org_service.create_org(db, data, owner=user)


@router.get("/{org_id}", response_model=OrgResponse)
async def get_org(
    member: OrgMember = Depends(get_org_member), db: AsyncSession = Depends(get_db)
):
    org = await org_service.get_org(db, member.org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


@router.get("/{org_id}/members", response_model=list[MemberResponse])
async def list_members(
    admin: OrgMember = Depends(require_org_admin), db: AsyncSession = Depends(get_db)
):
    members = await org_service.list_members(db, admin.org_id)
    return [_member_response(m, m.user) for m in members]


@router.post("/{org_id}/members", response_model=MemberResponse, status_code=201)
async def add_member(
    data: MemberAdd,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_by_email(db, data.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if await org_service.get_membership(db, admin.org_id, user.id):
        raise HTTPException(status_code=409, detail="User is already a member")
    member = await org_service.add_member(db, admin.org_id, user, data.role)
    return _member_response(member, user)


@router.patch("/{org_id}/members/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: str,
    data: MemberUpdate,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    member = await org_service.get_member(db, admin.org_id, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")

    # Only owners may grant or revoke ownership
    touches_owner = member.role == "owner" or data.role == "owner"
    if touches_owner and data.role is not None and admin.role != "owner":
        raise HTTPException(status_code=403, detail="Only owners can change ownership")

    loses_owner = member.role == "owner" and (
        (data.role is not None and data.role != "owner") or data.status == "disabled"
    )
    if loses_owner and await org_service.count_owners(db, admin.org_id) <= 1:
        raise HTTPException(status_code=400, detail="Cannot demote the last owner")

    member = await org_service.update_member(db, member, data)
    return _member_response(member, await user_service.get_user(db, member.user_id))
