"""Organization / member request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class OrgCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    slug: str | None = Field(None, pattern=r"^[a-z0-9\-]+$", max_length=128)


class OrgResponse(BaseModel):
    id: str
    name: str
    slug: str
    tier: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MemberAdd(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    role: Literal["admin", "member"] = "member"


class MemberUpdate(BaseModel):
    role: Literal["owner", "admin", "member"] | None = None
    status: Literal["active", "disabled"] | None = None


class MemberResponse(BaseModel):
    id: str
    org_id: str
    user_id: str
    role: str
    status: str
    gateway_port: int | None
    gateway_status: str | None
    joined_at: datetime
    email: str | None = None
    name: str | None = None

    model_config = {"from_attributes": True}


class GatewayStatusResponse(BaseModel):
    member_id: str
    gateway_status: str | None
    gateway_port: int | None
    running: bool = False
    installed_skills: list[str] = Field(default_factory=list)
