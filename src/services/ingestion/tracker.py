"""In-flight ingestion tracking with callback-based listener notification.

Records the current :class:`IngestionStatus` of every document the
pipeline is working on and broadcasts transitions to registered listener
callbacks.  The persisted document only changes at the terminal state, so
this tracker is what the status endpoint reads while a document is still
being processed.

# ─── HOW TRACKING WORKS ───────────────────────────────────────────────
#
#   IngestionService ──update()──→ IngestionTracker ──callback()──→ listener
#
#   - Listeners are keyed by document_id, so concurrent ingestions never
#     see each other's events.
#   - Listener errors are caught and logged; one broken listener cannot
#     stall the pipeline or starve other listeners.
#   - Both sync and async callbacks are supported.
#   - A terminal transition (DONE or FAILED) is broadcast, then the
#     document's state and listeners are dropped.  From then on the
#     persisted document is the source of truth.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from src.models.document import IngestionStatus
from src.utils.logging import get_logger


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


@dataclass
class _DocumentProgress:
    """Internal snapshot of one document's ingestion progress.

    Mutable dataclass rather than Pydantic: internal-only and rewritten on
    every transition.
    """

    status: IngestionStatus = IngestionStatus.PENDING
    message: str = ""
    updated_at: datetime = field(default_factory=_utcnow)


class IngestionTracker:
    """Tracks per-document pipeline state and notifies listeners."""

    def __init__(self) -> None:
        self._progress: dict[str, _DocumentProgress] = {}
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(
        self,
        document_id: str,
        status: IngestionStatus,
        message: str = "",
    ) -> None:
        """Record a state transition and notify the document's listeners.

        Terminal states are delivered to listeners and then evicted, so the
        tracker only ever holds documents that are still in flight.

        Parameters
        ----------
        document_id:
            The document being ingested.
        status:
            The state the pipeline just entered.
        message:
            Human-readable detail (e.g. the failure reason).
        """
        self._progress[document_id] = _DocumentProgress(status=status, message=message)
        self._logger.debug(
            "ingestion_progress",
            document_id=document_id,
            status=status.value,
            message=message,
        )
        await self._notify_listeners(document_id, status, message)
        if status.is_terminal:
            self.forget(document_id)

    def get_status(self, document_id: str) -> dict | None:
        """Return the tracked state of *document_id*, or ``None`` if untracked.

        Returns
        -------
        dict | None
            Keys: ``status`` (:class:`str`), ``message`` (:class:`str`),
            ``updated_at`` (:class:`datetime`).
        """
        progress = self._progress.get(document_id)
        if progress is None:
            return None
        return {
            "status": progress.status.value,
            "message": progress.message,
            "updated_at": progress.updated_at,
        }

    def in_flight(self) -> list[str]:
        """Return identifiers of documents still being processed."""
        return list(self._progress)

    def forget(self, document_id: str) -> None:
        """Drop all tracking state and listeners for *document_id*."""
        self._progress.pop(document_id, None)
        self._listeners.pop(document_id, None)

    def register_listener(self, document_id: str, callback: Callable) -> None:
        """Register a callback receiving ``(document_id, status, message)``."""
        listeners = self._listeners.setdefault(document_id, [])
        if callback not in listeners:
            listeners.append(callback)

    def unregister_listener(self, document_id: str, callback: Callable) -> None:
        """Remove a previously registered callback."""
        listeners = self._listeners.get(document_id, [])
        if callback in listeners:
            listeners.remove(callback)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(
        self,
        document_id: str,
        status: IngestionStatus,
        message: str,
    ) -> None:
        for callback in list(self._listeners.get(document_id, [])):
            try:
                result = callback(document_id, status, message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    document_id=document_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
