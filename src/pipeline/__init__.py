"""Pipeline orchestration components for the magazine archive."""

from src.pipeline.orchestrator import MagazinePipeline
from src.pipeline.progress_tracker import ProgressTracker

__all__ = [
    "MagazinePipeline",
    "ProgressTracker",
]
