"""User request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.organization import OrgResponse


class UserSync(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    name: str | None = None
    avatar_url: str | None = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: str | None
    avatar_url: str | None
    status: str
    created_at: datetime
    last_login: datetime | None

    model_config = {"from_attributes": True}


class MembershipResponse(BaseModel):
    member_id: str
    role: str
    org: OrgResponse


class MeResponse(BaseModel):
    user: UserResponse
    memberships: list[MembershipResponse]
