import re

import pytest

from backend.applykit.config import Settings
from backend.applykit.main import app
from backend.applykit.models.schemas import CandidateInput
from backend.applykit.utils.rate_limiter import limiter

NAME_LINE = re.compile(r"^- Full Name: (.*)$", re.MULTILINE)


class FakeLLM:
    """Stands in for LLMService; records prompts and returns canned content."""

    def __init__(self, content=None, provider="openrouter", model="test/model", error=None):
        self.content = content
        self.provider = provider
        self.model = model
        self.error = error
        self.calls = []

    async def generate_response(self, system_prompt, user_prompt):
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt})
        if self.error is not None:
            raise self.error
        content = self.content
        if content is None:
            # Echo the candidate name back so callers can check isolation.
            name = NAME_LINE.search(user_prompt).group(1)
            content = (
                f"<resume>\nResume for {name}\n- Built things\n</resume>\n"
                f"<cover_letter>\nDear team, I am {name}.\n</cover_letter>"
            )
        return {
            "content": content,
            "provider": self.provider,
            "model": self.model,
            "usage": {"input_tokens": 10, "output_tokens": 5, "total_tokens": 15},
        }


def make_settings(**overrides) -> Settings:
    values = {
        "openrouter_api_key": "test-openrouter-key",
        "openai_api_key": None,
        "openrouter_model": None,
        "openai_model": None,
        "openrouter_site_url": None,
        "openrouter_app_name": None,
        "openai_base_url": None,
        "mlflow_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def candidate():
    return CandidateInput(
        full_name="Jane O'Brien",
        desired_role="Data Engineer",
        experience_summary="Five years building batch and streaming pipelines.",
        skills="Python, SQL, Airflow",
    )


@pytest.fixture(autouse=True)
def _reset_app_state():
    limiter.reset()
    yield
    app.dependency_overrides.clear()
