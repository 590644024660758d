"""
LLM Service: one chat-completion call against the configured provider.

OpenRouter and OpenAI both speak the OpenAI chat-completions API, so a single
LangChain ChatOpenAI client covers both; only base_url, headers and model
change. The service is built per request from an immutable ProviderConfig
and never retries: a failed call surfaces to the caller as a typed error.
"""
import logging
import time
from typing import Any, Dict, Optional

import openai
import tiktoken
from langchain_openai import ChatOpenAI
from langchain_core.messages import SystemMessage, HumanMessage

from backend.applykit.core.errors import (
    AuthenticationError,
    ProviderError,
    ProviderUnavailableError,
)
from backend.applykit.models.schemas import ProviderConfig
from backend.applykit.utils.prometheus_metrics import record_llm_call, record_llm_usage

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.4


class LLMService:
    """
    Thin wrapper around ChatOpenAI for a single provider.

    Errors raised by generate_response:
    - AuthenticationError: provider answered 401/403
    - ProviderUnavailableError: timeout or connection failure
    - ProviderError: any other error status from the provider
    """

    def __init__(
        self,
        config: ProviderConfig,
        timeout_seconds: float = 60,
        chat_model: Optional[Any] = None,
    ):
        self.config = config
        self._encoding = None
        self.chat_model = chat_model or ChatOpenAI(
            model=config.model,
            api_key=config.api_key.get_secret_value(),
            base_url=config.base_url,
            default_headers=dict(config.default_headers) or None,
            temperature=GENERATION_TEMPERATURE,
            timeout=timeout_seconds,
            max_retries=0,  # No automatic retries; the user re-submits
        )

    @property
    def provider(self) -> str:
        return self.config.provider.value

    @property
    def model(self) -> str:
        return self.config.model

    def count_tokens(self, text: str) -> int:
        """
        Estimate token count for usage tracking.
        Note: cl100k-family approximation whatever the routed model is.
        """
        try:
            if self._encoding is None:
                self._encoding = tiktoken.encoding_for_model("gpt-4")
            return len(self._encoding.encode(text))
        except Exception as e:
            logger.warning(f"Token counting failed: {e}. Using word estimate.")
            return int(len(text.split()) * 1.3)

    async def generate_response(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        """
        Send one chat request and return the raw message content.

        Returns:
            Dict with:
            - content: message content as returned (str or list of parts)
            - provider / model: what served the call
            - usage: estimated token counts
        """
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt)
        ]

        start_time = time.time()
        status = "failure"
        try:
            response = await self.chat_model.ainvoke(messages)
            status = "success"
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            logger.error(f"{self.provider} rejected credentials: status={e.status_code}")
            raise AuthenticationError(
                f"{self.provider} authentication failed", provider_status=e.status_code
            ) from e
        except openai.APIConnectionError as e:
            # APITimeoutError is a subclass
            logger.error(f"{self.provider} unreachable: {type(e).__name__}")
            raise ProviderUnavailableError(f"{self.provider} request failed: {type(e).__name__}") from e
        except openai.APIStatusError as e:
            logger.error(f"{self.provider} returned status={e.status_code}")
            raise ProviderError(
                f"{self.provider} returned status {e.status_code}", provider_status=e.status_code
            ) from e
        finally:
            record_llm_call(self.provider, self.model, status, time.time() - start_time)

        content = response.content
        input_tokens = self.count_tokens(system_prompt + user_prompt)
        output_tokens = self.count_tokens(content) if isinstance(content, str) else 0
        record_llm_usage(self.model, input_tokens, output_tokens)

        logger.info(f"{self.provider} succeeded: model={self.model} output_tokens={output_tokens}")

        return {
            "content": content,
            "provider": self.provider,
            "model": self.model,
            "usage": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": input_tokens + output_tokens,
            },
        }
