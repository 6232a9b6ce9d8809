"""Shared FastAPI dependencies: caller identity, org membership, services."""

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.organization import OrgMember
from app.models.user import User
from app.services import org_service, user_service
from app.services.gateway_service import GatewayService
from app.services.skill_scanner import SkillScanner

ADMIN_ROLES = ("owner", "admin")


async def get_current_user(
    x_user_id: str | None = Header(None), db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the signed-in user from the ``X-User-Id`` header."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = await user_service.get_user(db, x_user_id)
    if not user or user.status != "active":
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


async def get_org_member(
    org_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrgMember:
    member = await org_service.get_membership(db, org_id, user.id)
    if not member or member.status != "active":
        raise HTTPException(status_code=403, detail="Not a member of this organization")
    return member


async def require_org_admin(member: OrgMember = Depends(get_org_member)) -> OrgMember:
    if member.role not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Admin access required")
    return member


def get_scanner(request: Request) -> SkillScanner:
    return request.app.state.scanner


def get_gateway_service(request: Request) -> GatewayService:
    return request.app.state.gateways
