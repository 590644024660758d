from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel


class LLMProvider(str, Enum):
    """Available LLM providers."""
    OPENROUTER = "openrouter"
    OPENAI = "openai"


class HealthResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error: str
    request_id: str


class ProviderConfig(BaseModel):
    """Immutable connection settings for exactly one provider."""
    model_config = ConfigDict(frozen=True)

    provider: LLMProvider
    model: str
    api_key: SecretStr
    base_url: Optional[str] = None
    default_headers: Dict[str, str] = Field(default_factory=dict)


class CandidateInput(BaseModel):
    """Normalized form fields. Build it through core.validator.validate_candidate."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    full_name: str
    desired_role: str
    experience_summary: str
    previous_roles: str = ""
    skills: str = ""
    education: str = ""
    achievements: str = ""
    target_company: str = ""


class GenerationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    provider: str
    model: str
    resume_text: str
    cover_letter_text: str
    resume_file_name: str
    cover_letter_file_name: str
    resume_pdf_base64: str
    cover_letter_pdf_base64: str
