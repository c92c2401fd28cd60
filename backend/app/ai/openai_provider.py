"""
OpenAI provider implementation.
Uses the OpenAI SDK chat completions endpoint in JSON mode.
"""
import logging
import time
from typing import Optional

from openai import OpenAI, APIStatusError, APIConnectionError, APITimeoutError

from app.ai.base import LLMProvider
from app.config import settings
from app.errors import ProviderError
from app.utils.ai_metrics import track_ai_provider_metrics
from app.utils.logging import log_provider_request, log_provider_failure

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """
    OpenAI LLM provider implementation.

    API keys are stored in environment variables and never exposed to clients.
    Subclasses for OpenAI-compatible APIs override ``name``, ``display_name``,
    the key and ``base_url``.
    """

    name = "openai"
    display_name = "OpenAI"
    base_url: Optional[str] = None

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key if api_key is not None else self._configured_key()
        self.timeout = timeout or settings.provider_timeout_seconds

        if self.api_key:
            self.client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        else:
            self.client = None

    def _configured_key(self) -> Optional[str]:
        return settings.openai_api_key

    def _resolve_model(self, model: str) -> str:
        return model

    def is_configured(self) -> bool:
        """Check if the API key is configured."""
        return bool(self.api_key)

    @track_ai_provider_metrics("chat_completion")
    def _chat_completion(self, system_prompt: str, user_prompt: str, model: str, max_tokens: int, temperature: float):
        return self.client.chat.completions.create(
            model=model,
            messages=[
                {
                    "role": "system",
                    "content": system_prompt
                },
                {
                    "role": "user",
                    "content": user_prompt
                }
            ],
            response_format={"type": "json_object"},
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        max_tokens: int,
        temperature: float = 0.7,
    ) -> str:
        """
        Run a chat completion and return the message content.

        Raises:
            ProviderError: On missing configuration, transport failures,
                non-2xx responses or an empty completion
        """
        if not self.is_configured() or not self.client:
            raise ProviderError(f"{self.display_name} API key not configured")

        model = self._resolve_model(model)
        start_time = time.time()

        try:
            response = self._chat_completion(system_prompt, user_prompt, model, max_tokens, temperature)
        except APIStatusError as e:
            message = self._describe_status_error(e.status_code)
            self._log_failure(message, start_time, model)
            raise ProviderError(message) from e
        except (APITimeoutError, APIConnectionError) as e:
            message = f"{self.display_name} API request failed: {e}"
            self._log_failure(message, start_time, model)
            raise ProviderError(message) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            self._log_failure("empty completion", start_time, model)
            raise ProviderError(f"{self.display_name} API returned an empty response")

        usage = getattr(response, "usage", None)
        log_provider_request(
            logger,
            provider=self.name,
            operation="chat_completion",
            duration_ms=(time.time() - start_time) * 1000,
            model=model,
            prompt_tokens=getattr(usage, "prompt_tokens", None),
            completion_tokens=getattr(usage, "completion_tokens", None),
        )
        return content

    def _describe_status_error(self, status_code: int) -> str:
        if status_code == 401:
            return f"{self.display_name} API authentication failed"
        if status_code == 429:
            return f"{self.display_name} API rate limit exceeded"
        return f"{self.display_name} API error: {status_code}"

    def _log_failure(self, message: str, start_time: float, model: str) -> None:
        log_provider_failure(
            logger,
            provider=self.name,
            operation="chat_completion",
            error=message,
            duration_ms=(time.time() - start_time) * 1000,
            model=model,
        )
