"""Abstract base class for chat-completion LLM providers.

Used by the AI cleanup step to repair OCR and transcription noise, and by
the question-answering service.  Prompt wording belongs to the caller;
providers only move text to and from the model.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAILLMProvider (any OpenAI-compatible API, Groq by default)
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for text-completion LLM services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            Instruction message that sets the model's behaviour.
        user_prompt:
            The request or data to process.
        temperature:
            Sampling temperature (0.0 = deterministic).
        max_tokens:
            Upper bound on response length.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns no content.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier such as ``"openai-compatible"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present."""
