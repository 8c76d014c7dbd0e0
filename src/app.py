"""Application entry point for the a11yscope audit processor."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.local_storage import LocalFileStorage
from adapters.snapshot_store import JsonSnapshotStore
from adapters.summary_formatting import format_history, format_report
from core.config import HistoryConfig, RankingConfig
from core.engine import AuditEngine
from core.history import build_history
from core.scan_records import ScanRecordError, parse_scan_records
from core.site_keys import UNKNOWN_SITE, build_site_slug, site_url_from_pages
from core.snapshot_codec import report_to_dict

NAME = "A11YSCOPE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        # stderr keeps --json output on stdout machine-readable.
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/a11yscope.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _load_raw_results(path: str) -> list:
    if not os.path.exists(path):
        raise SystemExit(f"Raw results file not found: {path}")
    with open(path, "r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError as exc:
            raise SystemExit(f"Raw results file is not valid JSON: {path} ({exc})") from exc


def _process(args: argparse.Namespace) -> None:
    logger = logging.getLogger(__name__)

    try:
        records = parse_scan_records(_load_raw_results(args.raw_results))
    except ScanRecordError as exc:
        raise SystemExit(f"Unusable scanner output: {exc}") from exc

    site = args.site or os.getenv("SITE_URL") or site_url_from_pages(r.url for r in records)
    if not site or site == UNKNOWN_SITE:
        raise SystemExit("Cannot determine the site; pass --site or set SITE_URL")

    ranking = RankingConfig(top_n=settings.PRIORITY_TOP_N, min_rules=settings.PRIORITY_MIN_RULES)
    store = JsonSnapshotStore(LocalFileStorage(), settings.RESULTS_DIR)
    engine = AuditEngine(
        store=store,
        display_names=settings.load_reference_data(settings.FRIENDLY_NAMES_PATH),
        wcag_tags=settings.load_reference_data(settings.WCAG_TAGS_PATH),
        ranking=ranking,
    )
    logger.info("Processing %s scan records for %s", len(records), site)
    report = engine.run(site, records, previous_name=args.previous)

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
        return
    print(format_report(report, ranking.min_rules))


def _history(args: argparse.Namespace) -> None:
    history_config = HistoryConfig(limit=settings.HISTORY_LIMIT)
    points = build_history(
        LocalFileStorage(),
        settings.RESULTS_DIR,
        build_site_slug(args.site),
        limit=history_config.limit,
    )
    if args.json:
        print(json.dumps([asdict(point) for point in points], indent=2))
        return
    print(format_history(points))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="a11yscope")
    subparsers = parser.add_subparsers(dest="command")

    process_parser = subparsers.add_parser(
        "process",
        help="Aggregate raw scan results, diff against the last run, and save a snapshot",
    )
    process_parser.add_argument("raw_results", help="Path to the scanner's raw JSON output")
    process_parser.add_argument("--site", help="Site URL (defaults to SITE_URL or the first page's host)")
    process_parser.add_argument("--previous", help="Snapshot file name to diff against instead of the latest")
    process_parser.add_argument("--json", action="store_true", help="Print the report payload as JSON")

    history_parser = subparsers.add_parser("history", help="Show the violation trend for a site")
    history_parser.add_argument("site", help="Site URL or slug")
    history_parser.add_argument("--json", action="store_true", help="Print points as JSON")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    if not getattr(args, "json", False):
        _print_banner()
    _configure_logging()

    if args.command == "process":
        _process(args)
        return
    if args.command == "history":
        _history(args)
        return


if __name__ == "__main__":
    main()
