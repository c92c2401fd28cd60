"""
DeepSeek provider implementation.
DeepSeek uses OpenAI-compatible API, so we can use OpenAI SDK.
"""
from typing import Optional

from app.ai.openai_provider import OpenAIProvider
from app.config import settings


class DeepSeekProvider(OpenAIProvider):
    """
    DeepSeek LLM provider implementation.

    Tier models are OpenAI model names, so every request is served by
    deepseek-chat regardless of the requested model.
    """

    name = "deepseek"
    display_name = "DeepSeek"
    base_url = "https://api.deepseek.com"
    chat_model = "deepseek-chat"

    def _configured_key(self) -> Optional[str]:
        return settings.deepseek_api_key

    def _resolve_model(self, model: str) -> str:
        return self.chat_model
