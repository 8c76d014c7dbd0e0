"""Map the scanner's raw JSON into ScanRecord models."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, List

from core.models import MatchedElement, ScanRecord, Violation
from core.severity import normalize_impact
from core.site_keys import target_segments

LOGGER = logging.getLogger(__name__)

_OPENING_TAG = re.compile(r"^<[^>]+>")


class ScanRecordError(ValueError):
    """Raised when the scanner output cannot be interpreted at all."""


def strip_children(html: Any) -> str:
    """Keep only the outermost opening tag of an HTML snippet."""

    if not html or not isinstance(html, str):
        return ""
    match = _OPENING_TAG.match(html)
    return match.group(0) if match else html


def _parse_node(node: dict) -> MatchedElement:
    if not isinstance(node, dict):
        raise ScanRecordError(f"Matched element must be an object, got {type(node).__name__}")
    return MatchedElement(
        html=node.get("html") or "",
        target=target_segments(node.get("target") or ()),
    )


def _parse_tags(tags: Any) -> tuple[str, ...]:
    if isinstance(tags, str):
        return (tags,)
    return tuple(str(tag) for tag in tags or ())


def _parse_violation(raw: dict) -> Violation:
    if not isinstance(raw, dict):
        raise ScanRecordError(f"Violation entry must be an object, got {type(raw).__name__}")
    rule_id = raw.get("id")
    if not rule_id:
        raise ScanRecordError("Violation entry is missing its rule id")
    return Violation(
        rule_id=str(rule_id),
        impact=normalize_impact(raw.get("impact")),
        description=raw.get("description") or "",
        help=raw.get("help") or "",
        help_url=raw.get("helpUrl") or "",
        tags=_parse_tags(raw.get("tags")),
        nodes=tuple(_parse_node(node) for node in raw.get("nodes") or ()),
    )


def parse_scan_record(raw: dict) -> ScanRecord:
    """Build one ScanRecord from ``{url, violations}`` or ``{url, error}``."""

    if not isinstance(raw, dict):
        raise ScanRecordError(f"Scan record must be an object, got {type(raw).__name__}")
    url = raw.get("url")
    if not url:
        raise ScanRecordError("Scan record is missing its url")

    if raw.get("error"):
        return ScanRecord(url=url, error=str(raw["error"]), timestamp=raw.get("timestamp"))

    violations = tuple(_parse_violation(item) for item in raw.get("violations") or ())
    return ScanRecord(url=url, violations=violations, timestamp=raw.get("timestamp"))


def parse_scan_records(raw: Iterable[dict]) -> List[ScanRecord]:
    """Parse the full scanner output, preserving page order."""

    if isinstance(raw, dict) or isinstance(raw, (str, bytes)):
        raise ScanRecordError("Scanner output must be a list of page records")

    records = [parse_scan_record(item) for item in raw]
    failed = sum(1 for record in records if record.is_error)
    if failed:
        LOGGER.warning("%s of %s pages were not audited (scanner error)", failed, len(records))
    return records
