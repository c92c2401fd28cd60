"""
Base class for LLM providers.
All providers must implement this interface to ensure compatibility.
"""
from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """
    Abstract base class for text generation providers.

    The generation service only depends on this interface, so the provider
    behind it can be swapped by configuration (or replaced in tests).
    Implementations are synchronous; callers run them in a worker thread.
    """

    name: str = "unknown"

    @abstractmethod
    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        max_tokens: int,
        temperature: float = 0.7,
    ) -> str:
        """
        Produce a single completion for the given prompts.

        Args:
            system_prompt: Instructions for the model
            user_prompt: The request itself
            model: Model identifier requested by the caller
            max_tokens: Completion token ceiling
            temperature: Sampling temperature

        Returns:
            Raw completion text (expected to contain a JSON document)

        Raises:
            ProviderError: If the remote call fails
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if provider is properly configured (API key present, etc.).

        Returns:
            True if provider can be used, False otherwise
        """
        pass
