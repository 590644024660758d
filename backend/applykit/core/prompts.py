from enum import Enum

from backend.applykit.models.schemas import CandidateInput

NOT_PROVIDED = "Not provided"

RESUME_TAG = "resume"
COVER_LETTER_TAG = "cover_letter"


class PromptVersion(Enum):
    V1 = "v1"


GENERATION_SYSTEM_V1 = (
    "You are an expert resume and cover letter writer. "
    "Follow the user's format instructions exactly."
)

GENERATION_PROMPT_V1 = """
Write professional, recruiter-ready job application documents for the candidate below.

Candidate Details:
- Full Name: {full_name}
- Desired Role: {desired_role}
- Experience Summary: {experience_summary}
- Previous Roles: {previous_roles}
- Skills: {skills}
- Education: {education}
- Achievements: {achievements}
- Target Company: {target_company}

Instructions:
1) Create a tailored, ATS-friendly resume text for the desired role.
2) Create a tailored cover letter text for the same role and target company.
3) Keep claims realistic and grounded in supplied details.
4) Resume should include clear sections and bullet points.
5) Cover letter should be concise and persuasive.

Return output in this exact format:
<resume>
[resume text only]
</resume>
<cover_letter>
[cover letter text only]
</cover_letter>
"""


def _safe_value(value: str) -> str:
    value = (value or "").strip()
    return value or NOT_PROVIDED


class Prompts:
    """Centralized prompt repository. Versioned prompts for LLM calls."""

    @staticmethod
    def get_generation_system(version: PromptVersion) -> str:
        if version == PromptVersion.V1:
            return GENERATION_SYSTEM_V1
        else:
            raise ValueError(f"Unsupported prompt version: {version}")

    @staticmethod
    def build_generation_prompt(candidate: CandidateInput, version: PromptVersion = PromptVersion.V1) -> str:
        """
        The <resume>/<cover_letter> block at the end is what
        core.output_parser looks for; keep the two in sync.
        """
        if version != PromptVersion.V1:
            raise ValueError(f"Unsupported prompt version: {version}")

        fields = {
            name: _safe_value(getattr(candidate, name))
            for name in CandidateInput.model_fields
        }
        return GENERATION_PROMPT_V1.format(**fields).strip()
