"""API key request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

PROVIDER_IDS = ("anthropic", "openai", "openai-codex", "openrouter", "google")

# Environment variable each provider's key is exported as inside a gateway
PROVIDER_ENV_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "google": "GEMINI_API_KEY",
}


class ApiKeySet(BaseModel):
    provider: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)  # plaintext, encrypted before storage
    credential_type: Literal["api_key", "token", "oauth"] = "api_key"


class ApiKeyResponse(BaseModel):
    id: str
    provider: str
    key_masked: str
    credential_type: str
    is_company_default: bool
    created_at: datetime | None = None
    # value is NEVER returned
