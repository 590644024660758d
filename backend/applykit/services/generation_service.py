"""
Document generation pipeline: prompt -> provider -> parse -> render x2.
"""
from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Callable, Optional

import mlflow

from backend.applykit.config import Settings, get_settings
from backend.applykit.core.output_parser import extract_output_text, parse_tagged_sections
from backend.applykit.core.prompts import PromptVersion, Prompts
from backend.applykit.models.schemas import CandidateInput, GenerationResult, ProviderConfig
from backend.applykit.services.document_service import DocumentService
from backend.applykit.services.llm_service import GENERATION_TEMPERATURE, LLMService
from backend.applykit.utils.prometheus_metrics import track_request_metrics

logger = logging.getLogger(__name__)

LLMFactory = Callable[[ProviderConfig], LLMService]


class DocumentGenerationService:
    """
    Generates a tailored resume and cover letter for one candidate.

    Holds no per-request state: the LLM client is built from the
    ProviderConfig passed to each generate() call.
    """

    def __init__(
        self,
        llm_factory: Optional[LLMFactory] = None,
        documents: Optional[DocumentService] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.llm_factory = llm_factory or self._default_llm_factory
        self.documents = documents or DocumentService()
        self.version = PromptVersion.V1

    def _default_llm_factory(self, config: ProviderConfig) -> LLMService:
        return LLMService(config, timeout_seconds=self.settings.timeout_seconds)

    @track_request_metrics("generate_documents")
    async def generate(
        self,
        candidate: CandidateInput,
        provider_config: ProviderConfig,
        request_id: Optional[str] = None,
    ) -> GenerationResult:
        start_time = time.time()
        llm = self.llm_factory(provider_config)

        response = await llm.generate_response(
            system_prompt=Prompts.get_generation_system(self.version),
            user_prompt=Prompts.build_generation_prompt(candidate, self.version),
        )

        raw_text = extract_output_text(response["content"])
        sections = parse_tagged_sections(raw_text)

        # Both renders must succeed; either failure fails the request.
        resume_file, cover_letter_file = await asyncio.gather(
            asyncio.to_thread(self.documents.resume_pdf, candidate.full_name, sections.resume_text),
            asyncio.to_thread(self.documents.cover_letter_pdf, candidate.full_name, sections.cover_letter_text),
        )

        result = GenerationResult(
            provider=response["provider"],
            model=response["model"],
            resume_text=sections.resume_text,
            cover_letter_text=sections.cover_letter_text,
            resume_file_name=resume_file.filename,
            cover_letter_file_name=cover_letter_file.filename,
            resume_pdf_base64=base64.b64encode(resume_file.data).decode("ascii"),
            cover_letter_pdf_base64=base64.b64encode(cover_letter_file.data).decode("ascii"),
        )

        duration = time.time() - start_time
        logger.info(
            f"Generated documents request_id={request_id} provider={result.provider} "
            f"model={result.model} duration={duration:.2f}s"
        )
        if self.settings.mlflow_enabled:
            self._log_run(response, duration, request_id)

        return result

    def _log_run(self, response: dict, duration: float, request_id: Optional[str]) -> None:
        # No await inside: the active mlflow run is process-global.
        try:
            mlflow.set_tracking_uri(self.settings.mlflow_tracking_uri)
            mlflow.set_experiment(self.settings.experiment_name)
            with mlflow.start_run(run_name="document_generation"):
                mlflow.log_param("provider", response["provider"])
                mlflow.log_param("model", response["model"])
                mlflow.log_param("temperature", GENERATION_TEMPERATURE)
                mlflow.log_param("prompt_version", self.version.value)
                if request_id:
                    mlflow.set_tag("request_id", request_id)
                usage = response.get("usage", {})
                mlflow.log_metric("duration_seconds", duration)
                mlflow.log_metric("input_tokens", usage.get("input_tokens", 0))
                mlflow.log_metric("output_tokens", usage.get("output_tokens", 0))
        except Exception as e:
            logger.exception(f"MLflow logging failed: {e}")
