"""Org admin skill registry endpoints: scan, import, CRUD."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.deps import get_scanner, require_org_admin
from app.models.organization import OrgMember
from app.schemas.skill import (
    ImportRequest,
    ScanRequest,
    ScanResultResponse,
    SkillCreate,
    SkillResponse,
    SkillUpdate,
)
from app.services import skill_service
from app.services.errors import InvalidSourceError, RepoSyncError
from app.services.repo_cache import validate_git_url
from app.services.skill_scanner import SkillScanner

router = APIRouter()


@router.get("/", response_model=list[SkillResponse])
async def list_skills(
    admin: OrgMember = Depends(require_org_admin), db: AsyncSession = Depends(get_db)
):
    return await skill_service.list_skills(db, admin.org_id)


@router.post("/scan", response_model=list[ScanResultResponse])
async def scan_repo(
    data: ScanRequest,
    admin: OrgMember = Depends(require_org_admin),
    scanner: SkillScanner = Depends(get_scanner),
):
    """Clone or pull *git_url* and list every directory that holds a SKILL.md."""
    try:
        return await scanner.scan(data.git_url)
    except InvalidSourceError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RepoSyncError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to sync repository: {exc.stderr or exc}")


@router.post("/import", response_model=list[SkillResponse], status_code=201)
async def import_skills(
    data: ImportRequest,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        validate_git_url(data.git_url)
    except InvalidSourceError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return await skill_service.import_skills(db, admin.org_id, data.git_url, data.skills)


@router.post("/", response_model=SkillResponse, status_code=201)
async def create_skill(
    data: SkillCreate,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        validate_git_url(data.git_url)
    except InvalidSourceError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if await skill_service.find_by_source(db, admin.org_id, data.git_url, data.git_path):
        raise HTTPException(status_code=409, detail="Skill with this source already exists")
    return await skill_service.create_skill(db, admin.org_id, data)


@router.patch("/{skill_id}", response_model=SkillResponse)
async def update_skill(
    skill_id: str,
    data: SkillUpdate,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    if data.git_url is not None:
        try:
            validate_git_url(data.git_url)
        except InvalidSourceError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    try:
        skill = await skill_service.update_skill(db, admin.org_id, skill_id, data)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Skill with this source already exists")
    if not skill:
        raise HTTPException(status_code=404, detail="Skill not found")
    return skill


@router.delete("/{skill_id}", status_code=204)
async def delete_skill(
    skill_id: str,
    admin: OrgMember = Depends(require_org_admin),
    db: AsyncSession = Depends(get_db),
):
    deleted = await skill_service.delete_skill(db, admin.org_id, skill_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Skill not found")
