"""Retrieval-augmented question answering over the ingested material.

Takes a student's question, retrieves the most relevant chunks, sends them
to the LLM as context, and returns the answer together with citation stubs
and the aggregate confidence of the retrieved set.

Data flow
---------
  1. RETRIEVE  -- :meth:`RetrievalService.search` (vector ranking, keyword
                  fallback), optionally scoped to one course code.
  2. CONTEXT   -- Chunk contents joined with ``---`` separators, best first.
  3. GENERATE  -- One chat completion.  The system prompt sets the answer
                  register (exam, ELI5, pidgin gist, or open "brainy").
  4. CITE      -- Document id, 100-character excerpt and document
                  confidence for every chunk that went into the prompt.

Grounded modes never reach the LLM with an empty context: when retrieval
finds nothing, the mode's "not in your materials" reply is returned
directly with LOW confidence.  ``brainy`` is allowed to answer from
general knowledge, so it always calls the model.
"""

from __future__ import annotations

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.rag import Answer, AnswerMode, RetrievalResult
from src.services.retrieval_service import RetrievalService
from src.utils.errors import LLMError, ProviderUnavailableError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

_SYSTEM_PROMPTS: dict[AnswerMode, str] = {
    AnswerMode.EXAM: (
        "You are an exam preparation assistant for university students.\n"
        "Answer formally and precisely, focusing on what would earn marks in an exam.\n"
        "Use the lecturer's exact definitions and terminology from the provided context.\n"
        'If the answer is not in the context, say "This topic is not covered in your '
        'uploaded materials."'
    ),
    AnswerMode.ELI5: (
        "You are a friendly tutor explaining concepts simply.\n"
        "Break down complex ideas into simple terms a beginner can understand.\n"
        "Use analogies and examples. Keep the lecturer's key definitions intact.\n"
        'If the answer is not in the context, say "I don\'t have information on this '
        'from your notes."'
    ),
    AnswerMode.GIST: (
        "You are a Nigerian study buddy explaining in casual Pidgin English.\n"
        "Make it easy to understand with Nigerian analogies and expressions.\n"
        "Keep lecturer definitions accurate but explain them simply.\n"
        "Be respectful and avoid slang that is too informal.\n"
        'If the answer is not in the context, say "E no dey for your material o."'
    ),
    AnswerMode.BRAINY: (
        "You are a brilliant study assistant.\n"
        "You can answer any question, even if it is not in the provided materials.\n"
        "Give deep, insightful and comprehensive answers.\n"
        "If information is in the context, use it to ground your answer.\n"
        "Otherwise, use your general knowledge to give a clear explanation."
    ),
}

# Returned without an LLM call when a grounded mode retrieves nothing.
_NOT_COVERED: dict[AnswerMode, str] = {
    AnswerMode.EXAM: "This topic is not covered in your uploaded materials.",
    AnswerMode.ELI5: "I don't have information on this from your notes.",
    AnswerMode.GIST: "E no dey for your material o.",
}

_GROUNDED_TEMPLATE = (
    "CONTEXT FROM UPLOADED MATERIALS:\n{context}\n\n"
    "STUDENT QUESTION:\n{question}\n\n"
    "Provide a helpful answer based ONLY on the context above:"
)

_OPEN_TEMPLATE = (
    "CONTEXT (USE IF RELEVANT):\n{context}\n\n"
    "STUDENT QUESTION:\n{question}\n\n"
    "Provide a brilliant and helpful answer:"
)


class QAService:
    """Answers questions from retrieved course material using an LLM.

    Parameters
    ----------
    retrieval:
        Ranks stored chunks against the question.
    llm_provider:
        Chat-completion backend, or ``None`` when no API key is configured.
    temperature:
        Sampling temperature for answer generation.
    max_tokens:
        Upper bound on the answer's length in tokens.
    """

    def __init__(
        self,
        retrieval: RetrievalService,
        llm_provider: ILLMProvider | None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> None:
        self._retrieval = retrieval
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def enabled(self) -> bool:
        return self._llm is not None and self._llm.is_available()

    async def ask(
        self,
        question: str,
        course_code: str | None = None,
        mode: AnswerMode = AnswerMode.EXAM,
        top_k: int | None = None,
    ) -> Answer:
        """Retrieve context for *question* and generate an answer.

        Parameters
        ----------
        question:
            The student's question.
        course_code:
            Restrict retrieval to one course.
        mode:
            Answer register.
        top_k:
            Number of chunks to retrieve; the retrieval default when omitted.

        Raises
        ------
        ValueError
            If *question* is blank.
        ProviderUnavailableError
            If no LLM is configured.
        LLMError
            If the completion fails or comes back empty.
        """
        if not question.strip():
            raise ValueError("question must not be blank")
        llm = self._require_llm()

        result = await self._retrieval.search(question, course_code=course_code, top_k=top_k)

        if result.is_empty and mode.grounded:
            logger.info("answer_no_context", mode=mode.value, course_code=course_code)
            return self._build_answer(question, _NOT_COVERED[mode], mode, result)

        template = _GROUNDED_TEMPLATE if mode.grounded else _OPEN_TEMPLATE
        response = await llm.complete(
            system_prompt=_SYSTEM_PROMPTS[mode],
            user_prompt=template.format(context=result.build_context(), question=question),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        text = response.strip()
        if not text:
            raise LLMError("LLM returned an empty answer", provider_name=llm.get_provider_name())

        logger.info(
            "answer_generated",
            mode=mode.value,
            course_code=course_code,
            chunks=len(result.chunks),
            strategy=result.strategy.value,
            confidence=result.confidence.value,
        )
        return self._build_answer(question, text, mode, result)

    def _require_llm(self) -> ILLMProvider:
        if self._llm is None or not self._llm.is_available():
            raise ProviderUnavailableError(
                "Question answering needs an LLM; set OPENAI_API_KEY",
                provider_name=self._llm.get_provider_name() if self._llm else None,
            )
        return self._llm

    @staticmethod
    def _build_answer(
        question: str,
        text: str,
        mode: AnswerMode,
        result: RetrievalResult,
    ) -> Answer:
        return Answer(
            question=question,
            answer=text,
            mode=mode,
            sources=result.sources(),
            confidence=result.confidence,
            strategy=result.strategy,
            context_used=not result.is_empty,
        )
