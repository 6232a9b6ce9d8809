"""User sync (sign-in callback) and current-user endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.deps import get_current_user
from app.models.user import User
from app.schemas.organization import OrgResponse
from app.schemas.user import MembershipResponse, MeResponse, UserResponse, UserSync
from app.services import org_service, user_service

router = APIRouter()


@router.post("/users/sync", response_model=UserResponse)
async def sync_user(data: UserSync, db: AsyncSession = Depends(get_db)):
    user = await user_service.sync_user(db, data)
    if user.status != "active":
        raise HTTPException(status_code=403, detail="Account disabled")
    return user


@router.get("/me", response_model=MeResponse)
async def get_me(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    memberships = await org_service.list_memberships(db, user.id)
    return MeResponse(
        user=UserResponse.model_validate(user),
        memberships=[
            MembershipResponse(member_id=m.id, role=m.role, org=OrgResponse.model_validate(org))
            for m, org in memberships
        ],
    )
