"""Pipeline phase model for the magazine ingestion and extraction runs.

The orchestrator (src/pipeline/orchestrator.py) reports progress through
these phases via the ProgressTracker:

    QUEUED → OCR → COMPLETE                      (PDF ingestion run)
    QUEUED → EXTRACTION → SAVING → COMPLETE      (entity extraction run)

Any run can end in FAILED instead of COMPLETE.
"""

from __future__ import annotations

from enum import Enum


class PipelinePhase(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    QUEUED = "QUEUED"           # Run accepted, nothing done yet
    OCR = "OCR"                 # Rendering, splitting and reading pages
    EXTRACTION = "EXTRACTION"   # LLM calls in page batches
    SAVING = "SAVING"           # Writing entities and appearances
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
