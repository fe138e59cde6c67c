# =============================================================================
# src/cli/admin.py — CLI Admin Command (catalog curation)
# =============================================================================
#
# Curation tasks that follow extraction:
#
#   duplicates [type]              list fuzzy-duplicate groups (>= 0.7 by default)
#   merge <type> <keep> <ids...>   fold duplicates into one entity
#   verify <appearance-id>         mark an appearance as verified
#   reject <appearance-id>         delete a wrong appearance
#   verify-all <magazine-id>       verify every appearance of an issue
#   rename <type> <id> <name>      correct an entity name
#   status <magazine-id> <status>  pending | processing | review | published
#   geocode                        fill coordinates via OpenStreetMap Nominatim
#   cleanup                        delete entities with no appearances
#   delete <magazine-id>           remove an issue and its pages/appearances
#
# Usage examples:
#   python -m src.cli.admin duplicates skater
#   python -m src.cli.admin merge skater 4 17 23
#   python -m src.cli.admin status 12 published
# =============================================================================

"""Standalone CLI for reviewing and curating the catalog.

Usage::

    python -m src.cli.admin <command> [arguments]
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from src.cli.common import parse_args
from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import EntityType, MagazineStatus
from src.utils.errors import SkateArchiveError

_ENTITY_CHOICES = [entity_type.value for entity_type in EntityType]
_STATUS_CHOICES = [status.value for status in MagazineStatus]


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_duplicates(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.duplicate_detector import DuplicateDetector

    detector = DuplicateDetector(catalog, threshold=args.threshold or config["duplicates"]["threshold"])
    if args.entity_type:
        entity_type = EntityType(args.entity_type)
        found = {entity_type: await detector.scan(entity_type)}
    else:
        found = await detector.scan_all()

    total = 0
    for entity_type, groups in found.items():
        if not groups:
            continue
        print(f"\n{entity_type.value}s ({len(groups)} group(s)):")
        for group in groups:
            total += 1
            names = ", ".join(
                f"{c.name} [#{c.id}, {c.appearance_count} app.]" for c in group.entities
            )
            print(f"  {group.similarity_score:.0%}  {names}")

    if total == 0:
        print("No likely duplicates found.")
    else:
        print(f"\n{total} group(s).  Merge with: python -m src.cli.admin merge <type> <keep-id> <ids...>")
    return 0


async def _handle_merge(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.duplicate_detector import DuplicateDetector

    detector = DuplicateDetector(catalog, threshold=config["duplicates"]["threshold"])
    try:
        result = await detector.merge(EntityType(args.entity_type), args.keep_id, args.merge_ids)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(
        f"Merged {len(result.merged_ids)} {result.entity_type.value}(s) into #{result.keep_id}: "
        f"{result.appearances_moved} appearance(s) moved, "
        f"{result.appearances_combined} combined"
    )
    return 0


async def _handle_verify(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.review_service import ReviewService

    if not await ReviewService(catalog).verify(args.appearance_id):
        print(f"Appearance {args.appearance_id} not found", file=sys.stderr)
        return 1
    print(f"Verified appearance {args.appearance_id}")
    return 0


async def _handle_reject(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.review_service import ReviewService

    if not await ReviewService(catalog).reject(args.appearance_id):
        print(f"Appearance {args.appearance_id} not found", file=sys.stderr)
        return 1
    print(f"Rejected appearance {args.appearance_id}")
    return 0


async def _handle_verify_all(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.review_service import ReviewService

    count = await ReviewService(catalog).verify_all(args.magazine_id)
    print(f"Verified {count} appearance(s) in magazine {args.magazine_id}")
    return 0


async def _handle_rename(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.review_service import ReviewService

    entity_type = EntityType(args.entity_type)
    if not await ReviewService(catalog).rename(entity_type, args.entity_id, args.name):
        print(f"{entity_type.value} {args.entity_id} not found", file=sys.stderr)
        return 1
    print(f"Renamed {entity_type.value} {args.entity_id} to {args.name.strip()!r}")
    return 0


async def _handle_status(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.review_service import ReviewService

    status = MagazineStatus(args.status)
    if not await ReviewService(catalog).set_status(args.magazine_id, status):
        print(f"Magazine {args.magazine_id} not found", file=sys.stderr)
        return 1
    print(f"Magazine {args.magazine_id} is now {status.value}")
    return 0


async def _handle_geocode(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.providers.geocoding.nominatim_provider import NominatimGeocodingProvider
    from src.services.geocoding_service import GeocodingService

    geo_cfg = config["geocoding"]
    provider = NominatimGeocodingProvider(
        base_url=geo_cfg["url"],
        user_agent=geo_cfg["user_agent"],
        timeout=geo_cfg["timeout_seconds"],
    )
    try:
        report = await GeocodingService(
            catalog, provider, delay_seconds=geo_cfg["delay_seconds"],
        ).geocode_all()
    finally:
        await provider.close()

    print(f"Locations: {report.locations_geocoded} geocoded, {report.locations_failed} failed")
    print(f"Spots:     {report.spots_geocoded} geocoded, {report.spots_failed} failed")
    return 0


async def _handle_cleanup(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.review_service import ReviewService

    report = await ReviewService(catalog).cleanup_unused()
    if report.total == 0:
        print("No unused entities.")
        return 0

    print(f"Deleted {report.total} unused entities:")
    for entity_type, count in report.deleted.items():
        if count:
            print(f"  {entity_type.value + 's:':<15} {count}")
    if report.trick_mentions_deleted:
        print(f"  ({report.trick_mentions_deleted} trick mention(s) removed with them)")
    return 0


async def _handle_delete(args: argparse.Namespace, catalog: ICatalogProvider, config: dict) -> int:
    from src.services.review_service import ReviewService

    if not await ReviewService(catalog).delete_magazine(args.magazine_id):
        print(f"Magazine {args.magazine_id} not found", file=sys.stderr)
        return 1
    print(f"Deleted magazine {args.magazine_id}")
    return 0


_HANDLERS = {
    "duplicates": _handle_duplicates,
    "merge": _handle_merge,
    "verify": _handle_verify,
    "reject": _handle_reject,
    "verify-all": _handle_verify_all,
    "rename": _handle_rename,
    "status": _handle_status,
    "geocode": _handle_geocode,
    "cleanup": _handle_cleanup,
    "delete": _handle_delete,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.admin",
        description="Review, de-duplicate and geocode the magazine catalog.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Curation commands")

    dup_parser = subparsers.add_parser("duplicates", help="List likely duplicate entities")
    dup_parser.add_argument("entity_type", nargs="?", choices=_ENTITY_CHOICES, default=None)
    dup_parser.add_argument(
        "--threshold", type=float, default=None, help="Similarity cutoff (0-1, default 0.7)",
    )

    merge_parser = subparsers.add_parser("merge", help="Merge duplicate entities into one")
    merge_parser.add_argument("entity_type", choices=_ENTITY_CHOICES)
    merge_parser.add_argument("keep_id", type=int, help="Entity that survives")
    merge_parser.add_argument("merge_ids", type=int, nargs="+", help="Entities folded into it")

    verify_parser = subparsers.add_parser("verify", help="Verify one appearance")
    verify_parser.add_argument("appearance_id", type=int)

    reject_parser = subparsers.add_parser("reject", help="Delete one appearance")
    reject_parser.add_argument("appearance_id", type=int)

    verify_all_parser = subparsers.add_parser("verify-all", help="Verify all appearances of an issue")
    verify_all_parser.add_argument("magazine_id", type=int)

    rename_parser = subparsers.add_parser("rename", help="Rename an entity")
    rename_parser.add_argument("entity_type", choices=_ENTITY_CHOICES)
    rename_parser.add_argument("entity_id", type=int)
    rename_parser.add_argument("name")

    status_parser = subparsers.add_parser("status", help="Set an issue's status")
    status_parser.add_argument("magazine_id", type=int)
    status_parser.add_argument("status", choices=_STATUS_CHOICES)

    subparsers.add_parser("geocode", help="Geocode locations and spots without coordinates")
    subparsers.add_parser("cleanup", help="Delete entities with no appearances")

    delete_parser = subparsers.add_parser("delete", help="Delete an issue")
    delete_parser.add_argument("magazine_id", type=int)

    return parser


async def _run(args: argparse.Namespace) -> int:
    from src.cli.common import load_runtime, open_catalog

    _app_settings, config = load_runtime()
    catalog = await open_catalog(config)
    return await _HANDLERS[args.command](args, catalog, config)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the admin tool."""
    parser = _build_parser()
    args = parse_args(parser, argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = asyncio.run(_run(args))
    except SkateArchiveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
