"""Unit tests for IngestionQueue scheduling and draining."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from src.models.document import IngestionStatus
from src.models.rag import IngestionResult
from src.services.ingestion.task_queue import IngestionQueue


class _GatedService:
    """Stand-in pipeline whose runs block until the test opens the gate."""

    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.log: list[str] = []
        self.active = 0
        self.max_active = 0

    async def process_document(self, document_id, file_path, media_type=None):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.log.append(f"start:{document_id}:{file_path}")
        await self.gate.wait()
        self.log.append(f"end:{document_id}:{file_path}")
        self.active -= 1
        return IngestionResult(document_id=document_id, status=IngestionStatus.DONE)


class TestIngestionQueue:
    @pytest.mark.asyncio
    async def test_submit_returns_before_completion(self) -> None:
        service = _GatedService()
        queue = IngestionQueue(service)

        queue.submit("doc-1", "/tmp/a.pdf")
        await asyncio.sleep(0)

        assert queue.is_pending("doc-1")
        assert queue.pending_count == 1

        service.gate.set()
        result = await queue.wait_for("doc-1")

        assert result is not None
        assert result.status is IngestionStatus.DONE
        assert not queue.is_pending("doc-1")

    @pytest.mark.asyncio
    async def test_wait_for_unknown_document(self) -> None:
        queue = IngestionQueue(_GatedService())

        assert await queue.wait_for("nothing") is None

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self) -> None:
        service = _GatedService()
        queue = IngestionQueue(service, max_concurrency=2)

        for i in range(5):
            queue.submit(f"doc-{i}", f"/tmp/{i}.pdf")
        await asyncio.sleep(0.01)

        assert service.active == 2

        service.gate.set()
        await queue.join()

        assert service.max_active == 2
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_same_document_runs_sequentially(self) -> None:
        service = _GatedService()
        queue = IngestionQueue(service, max_concurrency=4)

        queue.submit("doc-1", "first")
        queue.submit("doc-1", "second")
        await asyncio.sleep(0.01)

        assert service.log == ["start:doc-1:first"]

        service.gate.set()
        await queue.join()

        assert service.log == [
            "start:doc-1:first",
            "end:doc-1:first",
            "start:doc-1:second",
            "end:doc-1:second",
        ]

    @pytest.mark.asyncio
    async def test_shutdown_drains_and_refuses_new_work(self) -> None:
        service = _GatedService()
        queue = IngestionQueue(service)
        queue.submit("doc-1", "/tmp/a.pdf")

        service.gate.set()
        await queue.shutdown()

        assert service.log[-1] == "end:doc-1:/tmp/a.pdf"
        with pytest.raises(RuntimeError):
            queue.submit("doc-2", "/tmp/b.pdf")

    @pytest.mark.asyncio
    async def test_crashed_task_is_discarded(self) -> None:
        service = MagicMock()

        async def _boom(document_id, file_path, media_type=None):
            raise RuntimeError("pipeline bug")

        service.process_document = _boom
        queue = IngestionQueue(service)

        task = queue.submit("doc-1", "/tmp/a.pdf")
        await queue.join()

        assert task.done()
        assert isinstance(task.exception(), RuntimeError)
        assert queue.pending_count == 0

    def test_rejects_non_positive_concurrency(self) -> None:
        with pytest.raises(ValueError):
            IngestionQueue(_GatedService(), max_concurrency=0)
