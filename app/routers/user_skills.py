"""Member skill toggles; a change redeploys the member's running gateway."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.deps import get_gateway_service, get_org_member
from app.models.organization import OrgMember
from app.models.skill import Skill
from app.schemas.skill import (
    SkillResponse,
    SkillToggle,
    SkillToggleBatch,
    SkillToggleResult,
    UserSkillResponse,
)
from app.services import skill_service
from app.services.gateway_service import GatewayService

router = APIRouter()


def _to_response(skill: Skill, assigned: bool) -> UserSkillResponse:
    return UserSkillResponse(**SkillResponse.model_validate(skill).model_dump(), assigned=assigned)


async def _toggleable_skill(db: AsyncSession, org_id: str, skill_id: str) -> Skill:
    skill = await skill_service.get_skill(db, org_id, skill_id)
    if not skill or not skill.enabled:
        raise HTTPException(status_code=404, detail=f"Skill not found: {skill_id}")
    if skill.type == "mandatory":
        raise HTTPException(status_code=400, detail=f"Cannot toggle mandatory skill: {skill.name}")
    return skill


@router.get("/", response_model=list[UserSkillResponse])
async def list_my_skills(
    member: OrgMember = Depends(get_org_member), db: AsyncSession = Depends(get_db)
):
    pairs = await skill_service.list_user_skills(db, member.org_id, member.user_id)
    return [_to_response(skill, assigned) for skill, assigned in pairs]


@router.post("/{skill_id}", response_model=SkillToggleResult)
async def toggle_skill(
    skill_id: str,
    data: SkillToggle,
    member: OrgMember = Depends(get_org_member),
    db: AsyncSession = Depends(get_db),
    gateways: GatewayService = Depends(get_gateway_service),
):
    skill = await _toggleable_skill(db, member.org_id, skill_id)
    await skill_service.set_user_skills(db, member.user_id, {skill.id: data.enabled})
    await gateways.redeploy_if_active(db, member)
    return SkillToggleResult(skill_id=skill.id, enabled=data.enabled)


@router.put("/", response_model=list[SkillToggleResult])
async def toggle_skills(
    data: SkillToggleBatch,
    member: OrgMember = Depends(get_org_member),
    db: AsyncSession = Depends(get_db),
    gateways: GatewayService = Depends(get_gateway_service),
):
    """Apply several toggles at once; nothing is saved unless every entry is valid."""
    toggles: dict[str, bool] = {}
    for entry in data.skills:
        skill = await _toggleable_skill(db, member.org_id, entry.id)
        toggles[skill.id] = entry.enabled

    await skill_service.set_user_skills(db, member.user_id, toggles)
    await gateways.redeploy_if_active(db, member)
    return [SkillToggleResult(skill_id=sid, enabled=enabled) for sid, enabled in toggles.items()]
