"""Unit tests for ProgressTracker — status snapshots and listener fan-out."""

from __future__ import annotations

import pytest

from src.models.pipeline import PipelinePhase
from src.pipeline.progress_tracker import ProgressTracker


class TestProgressTracker:
    def test_unknown_magazine_is_queued(self) -> None:
        status = ProgressTracker().get_status(42)
        assert status == {"phase": "QUEUED", "progress": 0.0, "message": ""}

    @pytest.mark.asyncio
    async def test_update_clamps_progress(self) -> None:
        tracker = ProgressTracker()
        await tracker.update(1, PipelinePhase.OCR, 140.0, "too far")
        assert tracker.get_status(1)["progress"] == 100.0
        await tracker.update(1, PipelinePhase.OCR, -5.0, "too early")
        assert tracker.get_status(1)["progress"] == 0.0

    @pytest.mark.asyncio
    async def test_listeners_are_per_magazine(self) -> None:
        tracker = ProgressTracker()
        seen: list[tuple] = []
        tracker.register_listener(1, lambda *args: seen.append(args))

        await tracker.update(1, PipelinePhase.OCR, 50.0, "half")
        await tracker.update(2, PipelinePhase.OCR, 10.0, "other issue")

        assert seen == [(1, PipelinePhase.OCR, 50.0, "half")]

    @pytest.mark.asyncio
    async def test_async_listener_awaited(self) -> None:
        tracker = ProgressTracker()
        seen: list[str] = []

        async def _listener(magazine_id, phase, progress, message) -> None:
            seen.append(message)

        tracker.register_listener(7, _listener)
        await tracker.update(7, PipelinePhase.EXTRACTION, 30.0, "window 1")

        assert seen == ["window 1"]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_others(self) -> None:
        tracker = ProgressTracker()
        seen: list[str] = []

        def _broken(*args) -> None:
            raise RuntimeError("listener bug")

        tracker.register_listener(1, _broken)
        tracker.register_listener(1, lambda *args: seen.append(args[3]))

        await tracker.update(1, PipelinePhase.COMPLETE, 100.0, "done")

        assert seen == ["done"]
        assert tracker.get_status(1)["phase"] == "COMPLETE"

    @pytest.mark.asyncio
    async def test_unregister(self) -> None:
        tracker = ProgressTracker()
        seen: list[str] = []

        def _listener(*args) -> None:
            seen.append(args[3])

        tracker.register_listener(1, _listener)
        tracker.register_listener(1, _listener)
        await tracker.update(1, PipelinePhase.OCR, 10.0, "first")
        tracker.unregister_listener(1, _listener)
        await tracker.update(1, PipelinePhase.OCR, 20.0, "second")

        assert seen == ["first"]
