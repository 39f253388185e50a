"""Command line entry point for path sharing maintenance tasks.

Usage:
    python -m pathshare get-path <path_id>
    python -m pathshare stats
    python -m pathshare export-reports --output reports.xlsx
    python -m pathshare migrate --cache pathshare_local_cache.json
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import asdict
from typing import Sequence

from .config import LOCAL_CACHE_FILE, REPORTS_EXPORT_FILE
from .errors import ConfigurationError, IdentityProviderError, PathShareError
from .local_cache import LocalCache
from .report_export import write_reports_workbook
from .services import AccuracyReportStore, MigrationService, PathStore, share_url
from .supabase_client import SupabaseAuth, SupabaseClient

LOGGER = logging.getLogger(__name__)

ACCESS_TOKEN_ENV = "PATHSHARE_ACCESS_TOKEN"


def _setup_logging(verbose: bool = False) -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Shared path and location report maintenance"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logs")
    sub = parser.add_subparsers(dest="command", required=True)

    get_path = sub.add_parser("get-path", help="Print a shared path as JSON")
    get_path.add_argument("path_id")

    sub.add_parser("stats", help="Print aggregate location accuracy statistics")

    export = sub.add_parser("export-reports", help="Write reports to an Excel file")
    export.add_argument("--output", default=REPORTS_EXPORT_FILE)

    migrate = sub.add_parser("migrate", help="Upload locally cached data once")
    migrate.add_argument("--cache", default=LOCAL_CACHE_FILE)
    migrate.add_argument(
        "--access-token",
        default=os.getenv(ACCESS_TOKEN_ENV),
        help=f"Signed-in user's access token (defaults to ${ACCESS_TOKEN_ENV})",
    )
    return parser.parse_args(argv)


def _cmd_get_path(client: SupabaseClient, path_id: str) -> int:
    path = PathStore(client).get_shared_path(path_id)
    if path is None:
        LOGGER.error("No shared path with id %s", path_id)
        return 1
    payload = asdict(path)
    payload["created_at"] = path.created_at.isoformat() if path.created_at else None
    payload["share_url"] = share_url(path.path_id)
    print(json.dumps(payload, indent=2))
    return 0


def _cmd_stats(client: SupabaseClient) -> int:
    stats = AccuracyReportStore(client).accuracy_statistics()
    print(
        f"Reports: {stats.count}\n"
        f"Average error: {stats.average_error_meters:.1f} m\n"
        f"Max error: {stats.max_error_meters:.1f} m"
    )
    return 0


def _cmd_export(client: SupabaseClient, output: str) -> int:
    reports = AccuracyReportStore(client).list_all_reports()
    write_reports_workbook(output, reports)
    return 0


def _cmd_migrate(client: SupabaseClient, cache_file: str, token: str | None) -> int:
    service = MigrationService(
        LocalCache(cache_file), PathStore(client), AccuracyReportStore(client)
    )
    try:
        summary = service.migrate_current(SupabaseAuth(), token)
    except IdentityProviderError as exc:
        LOGGER.error("Migration failed: %s", exc)
        return 1
    if summary.skipped_unauthenticated:
        LOGGER.warning("No signed-in user; nothing migrated")
    return 1 if summary.failed else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.verbose)
    try:
        client = SupabaseClient()
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 2

    try:
        if args.command == "get-path":
            return _cmd_get_path(client, args.path_id)
        if args.command == "stats":
            return _cmd_stats(client)
        if args.command == "export-reports":
            return _cmd_export(client, args.output)
        if args.command == "migrate":
            return _cmd_migrate(client, args.cache, args.access_token)
    except PathShareError as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1
    return 2
