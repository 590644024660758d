"""
Error taxonomy for document generation.

Every error knows the HTTP status it maps to, a short category used in
server logs, and the message that is safe to show the client. The exception
text itself (``str(exc)``) is for logs only.
"""
from __future__ import annotations

GENERIC_UPSTREAM_MESSAGE = "Failed to generate documents right now. Please try again."


class DocumentGenerationError(Exception):
    """Base class for every failure in the generation pipeline."""

    status_code: int = 502
    category: str = "upstream"
    public_message: str = GENERIC_UPSTREAM_MESSAGE


class ValidationError(DocumentGenerationError):
    """Raised when a required candidate field is empty after normalization."""

    status_code = 400
    category = "validation"
    public_message = (
        "Missing required fields. Please provide fullName, desiredRole, and experienceSummary."
    )


class ConfigurationError(DocumentGenerationError):
    """Raised when no provider credentials are configured."""

    status_code = 500
    category = "configuration"
    public_message = "Server configuration issue. Please contact support."


class ProviderError(DocumentGenerationError):
    """Raised when the LLM provider call fails."""

    def __init__(self, message: str, provider_status: int | None = None):
        super().__init__(message)
        self.provider_status = provider_status


class AuthenticationError(ProviderError):
    """Provider rejected our credentials (401/403)."""

    category = "upstream_auth"
    public_message = "AI provider authentication failed. Please try again later."


class ProviderUnavailableError(ProviderError):
    """Timeout or connection failure talking to the provider."""


class FormatError(DocumentGenerationError):
    """Model output is missing the <resume> or <cover_letter> section."""

    category = "format"
    public_message = "The generated content was not in the expected format. Please try again."


class ResponseFormatError(FormatError):
    """Provider response carried no usable text."""


class RenderError(DocumentGenerationError):
    """PDF rendering failed."""

    category = "render"
