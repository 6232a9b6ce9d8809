from app.models.api_key import ApiKey
from app.models.organization import Organization, OrgMember
from app.models.skill import Skill, UserSkill
from app.models.user import User

__all__ = ["ApiKey", "OrgMember", "Organization", "Skill", "User", "UserSkill"]
