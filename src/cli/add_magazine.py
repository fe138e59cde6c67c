# =============================================================================
# src/cli/add_magazine.py — CLI Add Command (new catalog issue)
# =============================================================================
#
# Creates a `pending` magazine record pointing at a PDF:
#
#   python -m src.cli.add_magazine /magazines/thrasher_1983_03.pdf "Thrasher" 1983 3 2 3
#   python -m src.cli.add_magazine ~/scans/tw-84-01.pdf "TransWorld Skateboarding" 1984 --copy
#
# Without --copy the path is stored as given: a leading "/" means "relative
# to the public directory", anything else is a filesystem path.  With --copy
# the file is copied to public/magazines/<title>_<timestamp>.pdf and the
# stored path becomes /magazines/<filename>.
# =============================================================================

"""Standalone CLI for registering a magazine issue in the catalog.

Usage::

    python -m src.cli.add_magazine <pdf-path> <title> <year> [volume] [issue] [month] [--copy]
"""

from __future__ import annotations

import argparse
import asyncio
import re
import shutil
import sys
import time
from pathlib import Path

from src.cli.common import parse_args
from src.utils.errors import CatalogError, SkateArchiveError

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]")


def stage_pdf(source: str | Path, public_dir: str | Path, title: str) -> str:
    """Copy *source* under ``<public_dir>/magazines`` and return its web path.

    Raises
    ------
    CatalogError
        If *source* is not a readable file.
    """
    source = Path(source).expanduser()
    if not source.is_file():
        raise CatalogError(message=f"PDF not found: {source}")

    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", title.lower())
    filename = f"{safe_name}_{int(time.time() * 1000)}.pdf"
    target_dir = Path(public_dir) / "magazines"
    target_dir.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target_dir / filename)
    return f"/magazines/{filename}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.add_magazine",
        description="Add a magazine issue (status: pending) to the catalog.",
    )
    parser.add_argument("pdf_path", help="PDF path (/-prefixed paths are relative to public/)")
    parser.add_argument("title", help="Magazine title, e.g. 'Thrasher'")
    parser.add_argument("year", type=int, help="Publication year")
    parser.add_argument("volume", type=int, nargs="?", default=None)
    parser.add_argument("issue", type=int, nargs="?", default=None)
    parser.add_argument("month", type=int, nargs="?", default=None, help="1-12")
    parser.add_argument(
        "--copy",
        action="store_true",
        help="Copy the PDF into public/magazines/ instead of referencing it",
    )
    return parser


async def _run(args: argparse.Namespace) -> int:
    from src.cli.common import load_runtime, open_catalog

    _app_settings, config = load_runtime()
    public_dir = config["storage"]["public_dir"]

    pdf_path = stage_pdf(args.pdf_path, public_dir, args.title) if args.copy else args.pdf_path

    catalog = await open_catalog(config)
    magazine = await catalog.create_magazine(
        title=args.title,
        year=args.year,
        volume=args.volume,
        issue=args.issue,
        month=args.month,
        pdf_path=pdf_path,
    )

    print(f"Added magazine {magazine.id}: {magazine.title} ({magazine.year})")
    print(f"  PDF: {pdf_path}")
    print("\nNext, convert the PDF to pages with:")
    print(f"  python -m src.cli.process_pdf {magazine.id}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for adding a magazine."""
    parser = _build_parser()
    args = parse_args(parser, argv)

    if args.month is not None and not 1 <= args.month <= 12:
        print("Error: month must be between 1 and 12", file=sys.stderr)
        sys.exit(1)

    try:
        exit_code = asyncio.run(_run(args))
    except SkateArchiveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
