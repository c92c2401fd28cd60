"""
LLM provider factory.
Selects and returns the appropriate provider based on environment configuration.
"""
import logging
from app.config import settings
from app.ai.base import LLMProvider
from app.ai.openai_provider import OpenAIProvider
from app.ai.deepseek_provider import DeepSeekProvider

logger = logging.getLogger(__name__)

PROVIDERS = {
    "openai": OpenAIProvider,
    "deepseek": DeepSeekProvider,
}


def get_provider_name() -> str:
    """
    Get the current provider name as a string.

    Returns:
        Provider name string ("openai" or "deepseek")
    """
    return (settings.ai_provider or "openai").lower()


def get_llm_provider() -> LLMProvider:
    """
    Factory function to get the configured LLM provider.

    Provider selection is controlled by AI_PROVIDER environment variable:
    - "openai" → OpenAIProvider (default)
    - "deepseek" → DeepSeekProvider

    Returns:
        LLMProvider instance

    Raises:
        ValueError: If provider is misconfigured or invalid
    """
    provider_name = get_provider_name()

    provider_class = PROVIDERS.get(provider_name)
    if provider_class is None:
        logger.error(f"Unknown AI provider: {provider_name}")
        raise ValueError(
            f"Invalid AI provider: {provider_name}. "
            f"Must be one of: {', '.join(repr(name) for name in PROVIDERS)}"
        )

    provider = provider_class()
    if not provider.is_configured():
        logger.warning(f"{provider.display_name} provider selected but API key not configured")
        raise ValueError(
            f"{provider.display_name} API key not configured. "
            f"Set {provider_name.upper()}_API_KEY environment variable."
        )
    logger.info(f"Using {provider.display_name} provider")
    return provider
