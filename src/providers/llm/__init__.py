"""LLM provider adapters.

One concrete implementation of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider — any OpenAI-compatible chat API (Groq by default)

At startup, main.py creates the provider only when OPENAI_API_KEY is set;
without it the text cleanup step is disabled and OCR/STT text is kept raw.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
