"""Background task queue for fire-and-forget document ingestion.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# The upload endpoint must answer immediately, so ingestion runs as an
# asyncio task owned by this queue rather than as a detached coroutine:
#
#   - submit() schedules the pipeline and returns at once
#   - an asyncio.Semaphore bounds how many documents ingest concurrently
#   - two submissions for the same document run one after the other
#   - wait_for() / join() let tests and the CLI await completion
#     deterministically; shutdown() drains outstanding work on app exit
#
# Outcomes are observed through the persisted document, not through the
# task: IngestionService.process_document never raises.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio

import structlog

from src.models.document import MediaType
from src.models.rag import IngestionResult
from src.services.ingestion.ingestion_service import IngestionService

logger = structlog.get_logger(logger_name=__name__)


class IngestionQueue:
    """Schedules :meth:`IngestionService.process_document` calls as tasks.

    Parameters
    ----------
    ingestion_service:
        The shared pipeline orchestrator.
    max_concurrency:
        Maximum number of documents ingesting at the same time.
    """

    def __init__(self, ingestion_service: IngestionService, max_concurrency: int = 2) -> None:
        if max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
        self._service = ingestion_service
        self._max_concurrency = max_concurrency
        self._semaphore: asyncio.Semaphore | None = None
        self._tasks: dict[str, asyncio.Task[IngestionResult]] = {}
        self._closed = False

    @property
    def pending_count(self) -> int:
        return sum(1 for t in self._tasks.values() if not t.done())

    def is_pending(self, document_id: str) -> bool:
        task = self._tasks.get(document_id)
        return task is not None and not task.done()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def submit(
        self,
        document_id: str,
        file_path: str,
        media_type: MediaType | None = None,
    ) -> asyncio.Task[IngestionResult]:
        """Schedule ingestion of *document_id* and return without waiting.

        Must be called from a running event loop.

        Raises
        ------
        RuntimeError
            If the queue has been shut down.
        """
        if self._closed:
            raise RuntimeError("Ingestion queue is shut down")
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)

        previous = self._tasks.get(document_id)
        task = asyncio.create_task(
            self._run(document_id, file_path, media_type, previous),
            name=f"ingest-{document_id}",
        )
        self._tasks[document_id] = task
        task.add_done_callback(lambda t: self._discard(document_id, t))
        logger.info("ingestion_submitted", document_id=document_id, pending=self.pending_count)
        return task

    async def _run(
        self,
        document_id: str,
        file_path: str,
        media_type: MediaType | None,
        previous: asyncio.Task[IngestionResult] | None,
    ) -> IngestionResult:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        async with self._semaphore:
            return await self._service.process_document(document_id, file_path, media_type)

    def _discard(self, document_id: str, task: asyncio.Task[IngestionResult]) -> None:
        if self._tasks.get(document_id) is task:
            del self._tasks[document_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "ingestion_task_crashed",
                document_id=document_id,
                error=str(task.exception()),
            )

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def wait_for(self, document_id: str) -> IngestionResult | None:
        """Await the latest submission for *document_id*.

        Returns ``None`` if nothing is queued for that document.
        """
        task = self._tasks.get(document_id)
        if task is None:
            return None
        return await task

    async def join(self) -> None:
        """Wait until every submitted task, including late submissions, is done."""
        while True:
            pending = [t for t in self._tasks.values() if not t.done()]
            if not pending:
                return
            await asyncio.wait(pending)

    async def shutdown(self) -> None:
        """Refuse new submissions and wait for outstanding ones."""
        self._closed = True
        pending = self.pending_count
        if pending:
            logger.info("ingestion_queue_draining", pending=pending)
        await self.join()
        logger.info("ingestion_queue_shutdown")
