"""Trend series built from a site's persisted snapshot files (core domain).

Two document shapes live in a results directory:

- the raw scanner output, a list of ``{url, violations: [...]}`` pages
  (written by older versions of the tool);
- a processed snapshot object with a ``rules`` list.

Each file is classified once into ``RawShape`` or ``ProcessedShape`` and the
counting code works on that variant only.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from core.models import HistoryPoint
from core.ports import PersistencePort
from core.severity import impact_weight
from core.site_keys import history_file_pattern

LOGGER = logging.getLogger(__name__)

HISTORY_LIMIT = 10
LATEST_PREFIX = "latest-"
# Conservative page count for processed files that record neither a count nor URLs.
DEFAULT_PAGE_COUNT = 1

# audit-results-<slug>-2024-03-01T09-30-00-000Z.json
_FILENAME_TIMESTAMP = re.compile(
    r"(\d{4}-\d{2}-\d{2})T(\d{2})-(\d{2})-(\d{2})(?:-(\d{3}))?Z?\.json$",
    re.IGNORECASE,
)


class HistoryFormatError(ValueError):
    """Raised for a history file that is neither a page list nor a snapshot."""


@dataclass(frozen=True)
class RawShape:
    pages: list
    timestamp: Optional[str]


@dataclass(frozen=True)
class ProcessedShape:
    rules: list
    page_count: int
    timestamp: Optional[str]


HistoryDocument = Union[RawShape, ProcessedShape]


def classify_document(data: Any) -> HistoryDocument:
    """Resolve a decoded JSON document into one of the two known shapes."""

    if isinstance(data, list):
        return RawShape(pages=data, timestamp=_raw_timestamp(data))

    if isinstance(data, dict) and isinstance(data.get("rules"), list):
        return ProcessedShape(
            rules=data["rules"],
            page_count=_processed_page_count(data),
            timestamp=data.get("timestamp"),
        )

    raise HistoryFormatError("document is neither a page list nor a snapshot with rules")


def _raw_timestamp(pages: list) -> Optional[str]:
    # Raw pages carry their own scan time; the last page finished the run.
    stamps = [page.get("timestamp") for page in pages if isinstance(page, dict) and page.get("timestamp")]
    return max(stamps) if stamps else None


def _processed_page_count(data: dict) -> int:
    for field_name in ("pagesAudited", "pageCount"):
        value = data.get(field_name)
        if isinstance(value, int) and value > 0:
            return value
    urls = data.get("urls")
    if isinstance(urls, list) and urls:
        return len(urls)
    return DEFAULT_PAGE_COUNT


def _count(document: HistoryDocument) -> tuple[int, int, int]:
    """Return (violation_count, total_penalty, page_count)."""

    violations = 0
    penalty = 0

    if isinstance(document, RawShape):
        for page in document.pages:
            if not isinstance(page, dict):
                continue
            for violation in page.get("violations") or ():
                count = len(violation.get("nodes") or ())
                violations += count
                penalty += count * impact_weight(violation.get("impact"))
        # Pages the scanner failed to load were not audited.
        audited = sum(1 for page in document.pages if isinstance(page, dict) and not page.get("error"))
        return violations, penalty, audited

    for rule in document.rules:
        if not isinstance(rule, dict):
            continue
        count = len(rule.get("occurrences") or ())
        violations += count
        penalty += count * impact_weight(rule.get("impact"))
    return violations, penalty, document.page_count


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""

    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_from_filename(name: str) -> Optional[str]:
    match = _FILENAME_TIMESTAMP.search(name)
    if not match:
        return None
    day, hour, minute, second, millis = match.groups()
    return f"{day}T{hour}:{minute}:{second}.{millis or '000'}+00:00"


def build_point(name: str, data: Any, modified_at: Optional[float] = None) -> HistoryPoint:
    """Turn one decoded file into a HistoryPoint.

    The point is dated from the document, then the file name, then the
    file's modification time. Raises HistoryFormatError (or ValueError for an
    unparsable timestamp) when the file cannot contribute a point.
    """

    document = classify_document(data)
    raw_timestamp = document.timestamp or timestamp_from_filename(name)
    if raw_timestamp:
        moment = parse_timestamp(str(raw_timestamp))
    elif modified_at is not None:
        moment = datetime.fromtimestamp(modified_at, tz=timezone.utc)
    else:
        raise HistoryFormatError("no timestamp in document, file name or file metadata")

    violations, penalty, pages = _count(document)
    return HistoryPoint(
        date=moment.astimezone(timezone.utc).date().isoformat(),
        violation_count=violations,
        total_penalty=penalty,
        page_count=pages,
        timestamp_epoch=int(moment.timestamp() * 1000),
    )


def build_history(
    storage: PersistencePort,
    directory: str,
    site_slug: str,
    limit: int = HISTORY_LIMIT,
) -> List[HistoryPoint]:
    """Return the most recent ``limit`` points for a site, oldest first.

    A file that cannot be read or parsed is logged and skipped; it never
    stops the rest of the scan.
    """

    try:
        names = storage.list_names(directory)
    except OSError:
        LOGGER.warning("History directory %s could not be listed", directory, exc_info=True)
        return []

    pattern = history_file_pattern(site_slug)
    points: List[HistoryPoint] = []
    for name in sorted(names):
        # The latest pointer duplicates the newest timestamped snapshot.
        if name.lower().startswith(LATEST_PREFIX) or not pattern.search(name):
            continue
        path = os.path.join(directory, name)
        try:
            data = json.loads(storage.read_bytes(path).decode("utf-8"))
            points.append(build_point(name, data, storage.modified_at(path)))
        except (OSError, UnicodeDecodeError, ValueError, TypeError, AttributeError) as exc:
            LOGGER.warning("History: skipping unreadable or malformed file %s (%s)", name, exc)

    points.sort(key=lambda point: point.timestamp_epoch)
    if limit > 0:
        points = points[-limit:]
    LOGGER.debug("History for %s: %s points", site_slug, len(points))
    return points
