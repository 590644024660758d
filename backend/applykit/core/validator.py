from __future__ import annotations

from typing import Any, Dict, Mapping

from backend.applykit.core.errors import ValidationError
from backend.applykit.models.schemas import CandidateInput

# Keyed by CandidateInput field name.
FIELD_MAX_LENGTHS: Dict[str, int] = {
    "full_name": 120,
    "desired_role": 160,
    "experience_summary": 3000,
    "previous_roles": 2500,
    "skills": 1800,
    "education": 1200,
    "achievements": 1800,
    "target_company": 160,
}

REQUIRED_FIELDS = ("full_name", "desired_role", "experience_summary")


def normalize_field(value: Any, max_len: int) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_len]


def validate_candidate(
    raw: Mapping[str, Any],
    max_lengths: Mapping[str, int] = FIELD_MAX_LENGTHS,
) -> CandidateInput:
    """
    Normalize raw form data (camelCase keys) into a CandidateInput.

    Non-string values become "", strings are trimmed and truncated.
    Raises ValidationError if a required field ends up empty.
    """
    values: Dict[str, str] = {}
    for name, field in CandidateInput.model_fields.items():
        values[name] = normalize_field(raw.get(field.alias or name), max_lengths[name])

    missing = [name for name in REQUIRED_FIELDS if not values[name]]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    return CandidateInput(**values)
