# =============================================================================
# src/cli/process_pdf.py — CLI Process Command (PDF -> pages + OCR text)
# =============================================================================
#
# Converts a catalogued issue's PDF into logical page images and OCR text:
#
#   1. Render each PDF page with PyMuPDF (scale 1.5)
#   2. Split landscape two-page spreads down the middle
#   3. Save public/pages/<id>/page-NNN.png and run Tesseract on each image
#   4. Replace the issue's page rows; cover = first page, status = review
#
# Usage:
#   python -m src.cli.process_pdf 12
#
# Needs the `tesseract` binary on PATH.  On failure the issue goes back to
# `pending` so the command can simply be run again.
# =============================================================================

"""Standalone CLI for turning an issue's PDF into catalog pages.

Usage::

    python -m src.cli.process_pdf <magazine-id>
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from src.cli.common import parse_args
from src.utils.errors import SkateArchiveError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.process_pdf",
        description="Render, split and OCR the PDF of a catalogued issue.",
    )
    parser.add_argument("magazine_id", type=int, help="Catalog id of the issue")
    return parser


async def _run(args: argparse.Namespace) -> int:
    from src.cli.common import load_runtime, open_catalog
    from src.pipeline.orchestrator import MagazinePipeline
    from src.providers.ocr.tesseract_provider import TesseractOCRProvider
    from src.providers.pdf.pymupdf_renderer import PyMuPDFRenderer
    from src.services.extraction_saver import ExtractionSaver
    from src.services.pdf_processor import PDFProcessor

    _app_settings, config = load_runtime()
    pdf_cfg = config["pdf"]

    ocr = TesseractOCRProvider(language=pdf_cfg["ocr_language"])
    if not ocr.is_available():
        print("Error: tesseract is not installed or not on PATH", file=sys.stderr)
        return 1

    catalog = await open_catalog(config)
    processor = PDFProcessor(
        PyMuPDFRenderer(),
        ocr,
        public_dir=config["storage"]["public_dir"],
        render_scale=pdf_cfg["render_scale"],
        spread_threshold=pdf_cfg["spread_threshold"],
        pages_subdir=pdf_cfg["pages_subdir"],
    )
    pipeline = MagazinePipeline(
        catalog=catalog,
        pdf_processor=processor,
        extraction_service=None,
        extraction_saver=ExtractionSaver(catalog),
    )

    def _print_progress(_magazine_id, phase, progress, message) -> None:  # noqa: ANN001
        print(f"  [{phase.value:<8}] {progress:5.1f}%  {message}")

    pipeline.progress_tracker.register_listener(args.magazine_id, _print_progress)

    print(f"Processing PDF for magazine {args.magazine_id}")
    result = await pipeline.run_ocr(args.magazine_id)

    print(f"\nDone: {result.total_pages} pages ({result.spread_count} spreads split)")
    print(f"  Images: {processor.output_dir(args.magazine_id)}")
    print("\nNext, extract entities with:")
    print(f"  python -m src.cli.extract {args.magazine_id}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for PDF processing."""
    parser = _build_parser()
    args = parse_args(parser, argv)

    try:
        exit_code = asyncio.run(_run(args))
    except SkateArchiveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
