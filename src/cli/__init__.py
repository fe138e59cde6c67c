# =============================================================================
# src/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# This package provides standalone command-line tools for the skate
# magazine archive.  Each submodule is a self-contained CLI utility that
# can be run directly via `python -m src.cli.<module>`.
#
# An issue moves through the tools in order:
#
#   1. ADD        (add_magazine.py)
#      Registers an issue (title, year, volume/issue/month) pointing at its
#      PDF.  Status: pending.
#
#   2. PROCESS    (process_pdf.py)
#      Renders the PDF, splits two-page spreads, saves page images under
#      public/pages/<id>/ and OCRs each page with Tesseract.  Status: review.
#
#   3. EXTRACT    (extract.py)
#      Sends page text (or page images with --vision) to the LLM and saves
#      skaters, spots, photographers, brands, tricks, events and locations
#      with the pages they appear on.
#
#   4. CURATE     (admin.py)
#      Duplicate detection and merging, appearance review, renames, status
#      changes, geocoding through Nominatim and unused-entity cleanup.
#
# Architecture Notes:
#   - All CLI modules use argparse for argument parsing.
#   - Heavy imports (LLM providers, PyMuPDF, Tesseract) are deferred
#     inside the functions that need them.
#   - Each module constructs its own service dependencies through the
#     helpers in common.py.
# =============================================================================

"""CLI tools for the skate magazine archive.

Provides standalone command-line utilities:

- ``python -m src.cli.add_magazine`` — register an issue and its PDF.
- ``python -m src.cli.process_pdf`` — PDF to page images and OCR text.
- ``python -m src.cli.extract`` — LLM entity extraction for an issue.
- ``python -m src.cli.admin`` — duplicates, merges, review, geocoding
  and cleanup.
"""
