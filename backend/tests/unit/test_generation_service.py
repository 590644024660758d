import asyncio
import base64
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError as PydanticValidationError

from backend.applykit.config import resolve_provider_config
from backend.applykit.core.errors import FormatError, RenderError, ResponseFormatError
from backend.applykit.core.validator import validate_candidate
from backend.applykit.services.document_service import DocumentService
from backend.applykit.services.generation_service import DocumentGenerationService

from conftest import FakeLLM, make_settings


def _service(llm, **kwargs):
    return DocumentGenerationService(llm_factory=lambda config: llm, settings=make_settings(), **kwargs)


def _provider_config():
    return resolve_provider_config(make_settings())


def test_generate_returns_texts_and_pdfs(candidate):
    llm = FakeLLM(content="<resume>\n RESUME \n</resume>\n<cover_letter>LETTER</cover_letter>")
    result = asyncio.run(_service(llm).generate(candidate, _provider_config()))

    assert result.provider == "openrouter"
    assert result.model == "test/model"
    assert result.resume_text == "RESUME"
    assert result.cover_letter_text == "LETTER"
    assert result.resume_file_name == "jane-o-brien-resume.pdf"
    assert result.cover_letter_file_name == "jane-o-brien-cover-letter.pdf"
    assert base64.b64decode(result.resume_pdf_base64)[:4] == b"%PDF"
    assert base64.b64decode(result.cover_letter_pdf_base64)[:4] == b"%PDF"


def test_generate_sends_built_prompt(candidate):
    llm = FakeLLM()
    asyncio.run(_service(llm).generate(candidate, _provider_config()))

    call = llm.calls[0]
    assert "expert resume and cover letter writer" in call["system_prompt"]
    assert "- Full Name: Jane O'Brien" in call["user_prompt"]
    assert "- Education: Not provided" in call["user_prompt"]


def test_llm_factory_receives_provider_config(candidate):
    seen = []
    llm = FakeLLM()

    def factory(config):
        seen.append(config)
        return llm

    config = _provider_config()
    service = DocumentGenerationService(llm_factory=factory, settings=make_settings())
    asyncio.run(service.generate(candidate, config))

    assert seen == [config]


def test_renders_use_candidate_titles(candidate):
    documents = MagicMock(wraps=DocumentService())
    asyncio.run(_service(FakeLLM(), documents=documents).generate(candidate, _provider_config()))

    documents.resume_pdf.assert_called_once_with("Jane O'Brien", "Resume for Jane O'Brien\n- Built things")
    documents.cover_letter_pdf.assert_called_once_with("Jane O'Brien", "Dear team, I am Jane O'Brien.")


def test_list_content_is_supported(candidate):
    llm = FakeLLM(content=[{"type": "text", "text": "<resume>A</resume>"}, "<cover_letter>B</cover_letter>"])
    result = asyncio.run(_service(llm).generate(candidate, _provider_config()))

    assert (result.resume_text, result.cover_letter_text) == ("A", "B")


def test_missing_tag_raises_format_error(candidate):
    llm = FakeLLM(content="Here is your resume: ...")

    with pytest.raises(FormatError):
        asyncio.run(_service(llm).generate(candidate, _provider_config()))


def test_empty_content_raises_response_format_error(candidate):
    with pytest.raises(ResponseFormatError):
        asyncio.run(_service(FakeLLM(content=[])).generate(candidate, _provider_config()))


def test_render_failure_fails_the_pair(candidate):
    documents = MagicMock()
    documents.resume_pdf.side_effect = RenderError("boom")
    documents.cover_letter_pdf.return_value = DocumentService().cover_letter_pdf("x", "y")

    with pytest.raises(RenderError):
        asyncio.run(_service(FakeLLM(), documents=documents).generate(candidate, _provider_config()))


def test_concurrent_requests_are_isolated():
    service = DocumentGenerationService(llm_factory=lambda config: FakeLLM(), settings=make_settings())
    config = _provider_config()
    alice = validate_candidate({"fullName": "Alice", "desiredRole": "PM", "experienceSummary": "Plans."})
    bob = validate_candidate({"fullName": "Bob", "desiredRole": "SRE", "experienceSummary": "Pages."})

    async def run_both():
        return await asyncio.gather(service.generate(alice, config), service.generate(bob, config))

    a, b = asyncio.run(run_both())

    assert a.resume_text.startswith("Resume for Alice")
    assert a.resume_file_name == "alice-resume.pdf"
    assert "Bob" not in a.resume_text + a.cover_letter_text
    assert b.resume_text.startswith("Resume for Bob")
    assert b.cover_letter_file_name == "bob-cover-letter.pdf"
    assert "Alice" not in b.resume_text + b.cover_letter_text


@patch("backend.applykit.services.generation_service.mlflow")
def test_mlflow_run_logged_when_enabled(mock_mlflow, candidate):
    service = DocumentGenerationService(
        llm_factory=lambda config: FakeLLM(),
        settings=make_settings(mlflow_enabled=True),
    )
    asyncio.run(service.generate(candidate, _provider_config(), request_id="req-1"))

    mock_mlflow.start_run.assert_called_once_with(run_name="document_generation")
    mock_mlflow.log_param.assert_any_call("provider", "openrouter")
    mock_mlflow.log_param.assert_any_call("temperature", 0.4)
    mock_mlflow.set_tag.assert_called_once_with("request_id", "req-1")


@patch("backend.applykit.services.generation_service.mlflow")
def test_mlflow_not_used_by_default(mock_mlflow, candidate):
    asyncio.run(_service(FakeLLM()).generate(candidate, _provider_config()))

    mock_mlflow.start_run.assert_not_called()


def test_generation_result_serializes_camel_case(candidate):
    result = asyncio.run(_service(FakeLLM()).generate(candidate, _provider_config()))

    assert set(result.model_dump(by_alias=True)) == {
        "provider",
        "model",
        "resumeText",
        "coverLetterText",
        "resumeFileName",
        "coverLetterFileName",
        "resumePdfBase64",
        "coverLetterPdfBase64",
    }


def test_candidate_input_is_frozen(candidate):
    with pytest.raises(PydanticValidationError):
        candidate.full_name = "Someone else"
    assert candidate.full_name == "Jane O'Brien"


@patch("backend.applykit.services.generation_service.logger")
@patch("backend.applykit.services.generation_service.mlflow")
def test_mlflow_failure_logged_with_traceback(mock_mlflow, mock_logger, candidate):
    mock_mlflow.start_run.side_effect = RuntimeError("tracking server down")
    service = DocumentGenerationService(
        llm_factory=lambda config: FakeLLM(),
        settings=make_settings(mlflow_enabled=True),
    )

    result = asyncio.run(service.generate(candidate, _provider_config()))

    assert result.resume_file_name == "jane-o-brien-resume.pdf"
    mock_logger.exception.assert_called_once()
    assert "tracking server down" in mock_logger.exception.call_args.args[0]
