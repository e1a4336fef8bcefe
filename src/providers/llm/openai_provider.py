"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
The client is built once at startup (see ``src/main.py``) and injected,
so the extractors, the vectorizer and this provider share one connection
pool and tests never need network access.

Many vendors (Groq, TogetherAI, Fireworks) expose OpenAI-compatible REST
APIs.  By pointing the client at a different ``base_url``, this single
adapter talks to any of them.  The default deployment uses Groq's
``llama-3.1-8b-instant`` for OCR cleanup.
"""

from __future__ import annotations

import openai
import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TEXT_MODEL = "llama-3.1-8b-instant"


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    This class is an adapter:
        - It implements ILLMProvider (the interface the app expects)
        - It wraps the openai SDK (the third-party library)
        - The rest of the app never imports or calls openai directly
    """

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        model: str = DEFAULT_TEXT_MODEL,
    ) -> None:
        self._client = client
        self._model = model
        # Label used in logs and error messages to identify this provider.
        default_host = "api.openai.com" in str(client.base_url)
        self._provider_label = "openai" if default_host else "openai-compatible"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a text completion via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            # "from exc" preserves the original stack trace for debugging.
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def get_provider_name(self) -> str:
        """Return 'openai' or 'openai-compatible' depending on the endpoint."""
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._client.api_key)
