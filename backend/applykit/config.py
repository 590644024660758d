"""
Store env variables and other config settings.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.applykit.core.errors import ConfigurationError
from backend.applykit.models.schemas import LLMProvider, ProviderConfig

PROJECT_ROOT = Path(__file__).resolve().parents[2]

OPENROUTER_DEFAULT_MODEL = "openai/gpt-4o-mini"
OPENROUTER_DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
OPENAI_DEFAULT_MODEL = "gpt-4.1-mini"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars to prevent crashes
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    static_dir: Path = PROJECT_ROOT / "public"
    max_body_bytes: int = 1024 * 1024

    # Rate limiting (applies to /api routes only)
    rate_limit_enabled: bool = True
    rate_limit: str = "30/15 minutes"
    rate_limit_storage_uri: str = "memory://"

    # LLM Configuration
    # NOTE: keep it optional for import-time, enforce at call-time.
    openrouter_api_key: SecretStr | None = Field(default=None, description="Primary LLM provider")
    openai_api_key: SecretStr | None = Field(default=None, description="Fallback LLM provider")

    openrouter_model: str | None = None
    openai_model: str | None = None
    openrouter_base_url: str = OPENROUTER_DEFAULT_BASE_URL
    openai_base_url: str | None = None

    # Sent to OpenRouter as HTTP-Referer / X-Title
    openrouter_site_url: str | None = None
    openrouter_app_name: str | None = None

    timeout_seconds: int = 60

    # MLflow
    mlflow_enabled: bool = False
    mlflow_tracking_uri: str = "file:./mlruns"
    experiment_name: str = "applykit_v1"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def _secret(value: SecretStr | None) -> str | None:
    if value is None:
        return None
    raw = value.get_secret_value().strip()
    return raw or None


def resolve_provider_config(settings: Settings) -> ProviderConfig:
    """
    Pick exactly one provider from settings.

    OpenRouter wins when both keys are present. Raises ConfigurationError
    when neither key is set.
    """
    openrouter_key = _secret(settings.openrouter_api_key)
    openai_key = _secret(settings.openai_api_key)

    if openrouter_key:
        headers: dict[str, str] = {}
        if settings.openrouter_site_url:
            headers["HTTP-Referer"] = settings.openrouter_site_url
        if settings.openrouter_app_name:
            headers["X-Title"] = settings.openrouter_app_name

        return ProviderConfig(
            provider=LLMProvider.OPENROUTER,
            model=settings.openrouter_model or settings.openai_model or OPENROUTER_DEFAULT_MODEL,
            api_key=SecretStr(openrouter_key),
            base_url=settings.openrouter_base_url or OPENROUTER_DEFAULT_BASE_URL,
            default_headers=headers,
        )

    if openai_key:
        return ProviderConfig(
            provider=LLMProvider.OPENAI,
            model=settings.openai_model or OPENAI_DEFAULT_MODEL,
            api_key=SecretStr(openai_key),
            base_url=settings.openai_base_url or None,
        )

    raise ConfigurationError(
        "Missing API key. Set OPENROUTER_API_KEY (recommended) or OPENAI_API_KEY in .env."
    )
