"""Pipeline progress tracking with callback-based listener notification.

Tracks the current phase and progress percentage of each magazine's run
and broadcasts updates to registered listener callbacks.  Listeners are
keyed by magazine id so runs for different issues never cross-talk.

    Orchestrator ──update()──→ ProgressTracker ──callback()──→ CLI printer
                                                             ──→ (any other listener)

A listener that raises is logged and skipped; it never stops the run or
other listeners.  Both sync and async callbacks are supported.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from src.models.pipeline import PipelinePhase
from src.utils.logging import get_logger


@dataclass
class _RunStatus:
    """Internal snapshot of one magazine run's progress."""

    phase: PipelinePhase = PipelinePhase.QUEUED
    progress: float = 0.0
    message: str = ""


class ProgressTracker:
    """Tracks and broadcasts pipeline progress via callbacks.

    Callbacks receive ``(magazine_id, phase, progress, message)``.
    """

    def __init__(self) -> None:
        self._statuses: dict[int, _RunStatus] = {}
        self._listeners: dict[int, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(
        self,
        magazine_id: int,
        phase: PipelinePhase,
        progress: float,
        message: str,
    ) -> None:
        """Record a progress update and notify all registered listeners.

        Parameters
        ----------
        magazine_id:
            The issue whose run is reporting.
        phase:
            The current pipeline phase.
        progress:
            Completion percentage, clamped to 0.0 – 100.0.
        message:
            Human-readable status message.
        """
        progress = max(0.0, min(100.0, progress))
        self._statuses[magazine_id] = _RunStatus(phase=phase, progress=progress, message=message)

        self._logger.debug(
            "progress_update",
            magazine_id=magazine_id,
            phase=phase.value,
            progress=round(progress, 1),
            message=message,
        )
        await self._notify_listeners(magazine_id, phase, progress, message)

    def register_listener(self, magazine_id: int, callback: Callable) -> None:
        """Register a callback for one magazine's progress updates."""
        listeners = self._listeners.setdefault(magazine_id, [])
        if callback not in listeners:
            listeners.append(callback)

    def unregister_listener(self, magazine_id: int, callback: Callable) -> None:
        listeners = self._listeners.get(magazine_id, [])
        if callback in listeners:
            listeners.remove(callback)

    def get_status(self, magazine_id: int) -> dict:
        """Return ``{"phase", "progress", "message"}`` for a magazine.

        A magazine that never reported is ``QUEUED`` at 0 %.
        """
        status = self._statuses.get(magazine_id, _RunStatus())
        return {
            "phase": status.phase.value,
            "progress": status.progress,
            "message": status.message,
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(
        self,
        magazine_id: int,
        phase: PipelinePhase,
        progress: float,
        message: str,
    ) -> None:
        for callback in list(self._listeners.get(magazine_id, [])):
            try:
                result = callback(magazine_id, phase, progress, message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    magazine_id=magazine_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
