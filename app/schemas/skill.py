"""Skill request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

SkillType = Literal["mandatory", "optional", "restricted"]


class SkillCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str | None = None
    type: SkillType = "optional"
    git_url: str = Field(..., min_length=1, max_length=512)
    git_path: str = Field(..., min_length=1, max_length=512)


class SkillUpdate(BaseModel):
    type: SkillType | None = None
    enabled: bool | None = None
    git_url: str | None = Field(None, min_length=1, max_length=512)
    git_path: str | None = Field(None, min_length=1, max_length=512)


class SkillResponse(BaseModel):
    id: str
    name: str
    description: str | None
    type: str
    path: str
    git_url: str | None
    git_path: str | None
    org_id: str | None
    enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ScanRequest(BaseModel):
    git_url: str = Field(..., min_length=1)


class ScanResultResponse(BaseModel):
    name: str
    git_path: str
    description: str | None = None

    model_config = {"from_attributes": True}


class ImportEntry(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    git_path: str = Field(..., min_length=1, max_length=512)
    description: str | None = None


class ImportRequest(BaseModel):
    git_url: str = Field(..., min_length=1)
    skills: list[ImportEntry] = Field(..., min_length=1)


# ── Member toggles ───────────────────────────────────────────────────


class UserSkillResponse(SkillResponse):
    assigned: bool


class SkillToggle(BaseModel):
    enabled: bool


class SkillToggleEntry(BaseModel):
    id: str
    enabled: bool


class SkillToggleBatch(BaseModel):
    skills: list[SkillToggleEntry] = Field(..., min_length=1)


class SkillToggleResult(BaseModel):
    skill_id: str
    enabled: bool
