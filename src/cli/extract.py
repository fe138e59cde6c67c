# =============================================================================
# src/cli/extract.py — CLI Extract Command (pages -> catalog entities)
# =============================================================================
#
# Runs AI entity extraction over an already-processed magazine issue:
#
#   1. Load the issue's pages (OCR text, image paths) from the catalog
#   2. Send each page to the LLM in small concurrent windows
#      (3 at a time for text, 2 for vision)
#   3. Merge page results by name, accumulating page numbers
#   4. Replace the issue's appearances / trick mentions and set it to review
#
# Usage examples:
#   python -m src.cli.extract 12
#   python -m src.cli.extract 12 5            # first five pages only
#   python -m src.cli.extract 12 --vision     # page image + OCR text
#
# Requires ANTHROPIC_API_KEY (or OPENAI_API_KEY).  Exits 1 on usage or
# configuration errors.
# =============================================================================

"""Standalone CLI for extracting catalog entities from a magazine issue.

Usage::

    python -m src.cli.extract <magazine-id> [max-pages] [--vision]
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from src.cli.common import parse_args
from src.models.catalog import EntityType
from src.utils.errors import ConfigurationError, SkateArchiveError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.extract",
        description="Extract skaters, spots, tricks, brands and more from a processed issue.",
    )
    parser.add_argument("magazine_id", type=int, help="Catalog id of the issue")
    parser.add_argument(
        "max_pages",
        type=int,
        nargs="?",
        default=None,
        help="Only extract the first N pages (for testing prompts)",
    )
    parser.add_argument(
        "--vision",
        action="store_true",
        help="Send page images with the OCR text (better on stylised layouts)",
    )
    return parser


async def _run(args: argparse.Namespace) -> int:
    from src.cli.common import build_llm_provider, load_runtime, open_catalog
    from src.pipeline.orchestrator import MagazinePipeline
    from src.services.entity_extractor import EntityExtractor
    from src.services.extraction_saver import ExtractionSaver
    from src.services.extraction_service import ExtractionService

    app_settings, config = load_runtime()
    llm = build_llm_provider(app_settings)
    if args.vision and not llm.supports_vision():
        raise ConfigurationError(
            message=f"{llm.get_provider_name()} is not configured for vision",
            provider_name=llm.get_provider_name(),
        )

    catalog = await open_catalog(config)
    extraction_cfg = config["extraction"]
    extractor = EntityExtractor(
        llm,
        max_tokens=extraction_cfg["max_tokens"],
        temperature=extraction_cfg["temperature"],
    )
    service = ExtractionService(
        catalog,
        extractor,
        public_dir=config["storage"]["public_dir"],
        concurrency=extraction_cfg["concurrency"],
        vision_concurrency=extraction_cfg["vision_concurrency"],
    )
    pipeline = MagazinePipeline(
        catalog=catalog,
        pdf_processor=None,
        extraction_service=service,
        extraction_saver=ExtractionSaver(catalog, confidence_score=extraction_cfg["confidence"]),
    )

    def _print_progress(_magazine_id, phase, progress, message) -> None:  # noqa: ANN001
        print(f"  [{phase.value:<10}] {progress:5.1f}%  {message}")

    pipeline.progress_tracker.register_listener(args.magazine_id, _print_progress)

    mode = "vision + OCR" if args.vision else "OCR text"
    print(f"Extracting magazine {args.magazine_id} ({mode}, provider: {llm.get_provider_name()})")
    if args.max_pages:
        print(f"  Limited to {args.max_pages} page(s)")

    result = await pipeline.run_extraction(
        args.magazine_id, use_vision=args.vision, max_pages=args.max_pages,
    )

    print("\nExtraction complete:")
    for entity_type in EntityType:
        print(f"  {entity_type.value + 's:':<15} {len(result.entities_of(entity_type))}")
    print("\nReview the results, then publish with:")
    print(f"  python -m src.cli.admin status {args.magazine_id} published")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the extraction tool."""
    parser = _build_parser()
    args = parse_args(parser, argv)

    if args.max_pages is not None and args.max_pages < 1:
        print("Error: max-pages must be a positive integer", file=sys.stderr)
        sys.exit(1)

    try:
        exit_code = asyncio.run(_run(args))
    except SkateArchiveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
