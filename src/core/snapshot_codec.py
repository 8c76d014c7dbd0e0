"""JSON encoding for persisted snapshots.

Keys are camelCase because the files are shared with the report renderer
and with snapshots written by earlier versions of the tool.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from core.models import (
    AggregatedRule,
    AggregationSummary,
    AuditReport,
    DiffTotals,
    Occurrence,
    PrioritySummary,
    ResolvedRule,
    Resource,
    RuleDiff,
    Snapshot,
)
from core.severity import normalize_impact
from core.site_keys import target_segments


class SnapshotFormatError(ValueError):
    """Raised when a stored snapshot does not have the expected structure."""


def occurrence_to_dict(occurrence: Occurrence) -> dict[str, Any]:
    return {
        "page": occurrence.page,
        "html": occurrence.html,
        "target": list(occurrence.target),
        "isNewOccurrence": occurrence.is_new_occurrence,
        "isNewPage": occurrence.is_new_page,
    }


def diff_to_dict(diff: RuleDiff) -> dict[str, Any]:
    return {
        "new": diff.new,
        "resolved": diff.resolved,
        "unchanged": diff.unchanged,
        "newPages": list(diff.new_pages),
    }


def totals_to_dict(totals: DiffTotals) -> dict[str, int]:
    return {"new": totals.new, "resolved": totals.resolved, "unchanged": totals.unchanged}


def rule_to_dict(rule: AggregatedRule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "impact": rule.impact,
        "description": rule.description,
        "help": rule.help,
        "helpUrl": rule.help_url,
        "tags": list(rule.tags),
        "displayName": rule.display_name or rule.id,
        "wcagLevel": rule.wcag_level,
        "resources": [{"label": r.label, "url": r.url} for r in rule.resources],
        "occurrences": [occurrence_to_dict(o) for o in rule.occurrences],
        "pagesAffected": rule.pages_affected,
        "pages": list(rule.pages),
        "density": rule.density,
        "isSystemic": rule.is_systemic,
        "isNewRule": rule.is_new_rule,
        "priorityScore": rule.priority_score,
        "diff": diff_to_dict(rule.diff) if rule.diff else None,
    }


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    return {
        "site": snapshot.site,
        "timestamp": snapshot.timestamp,
        "pagesAudited": snapshot.pages_audited,
        "urls": list(snapshot.urls),
        "rules": [rule_to_dict(rule) for rule in snapshot.rules],
        "diffTotals": totals_to_dict(snapshot.diff_totals),
    }


def resolved_rule_to_dict(rule: ResolvedRule) -> dict[str, str]:
    return {"id": rule.id, "impact": rule.impact, "displayName": rule.display_name}


def summary_to_dict(summary: AggregationSummary) -> dict[str, Any]:
    return {
        "topRulesNames": list(summary.top_rule_ids),
        "violationPercentage": summary.violation_percentage,
        "pagePercentage": summary.page_percentage,
    }


def priority_summary_to_dict(summary: PrioritySummary) -> dict[str, int]:
    return {
        "percentOfViolations": summary.percent_of_violations,
        "percentOfPages": summary.percent_of_pages,
    }


def report_to_dict(report: AuditReport) -> dict[str, Any]:
    """Return the payload consumed by the report renderer."""

    return {
        "site": report.snapshot.site,
        "timestamp": report.snapshot.timestamp,
        "pagesAudited": report.pages_audited,
        "rules": [rule_to_dict(rule) for rule in report.rules],
        "priorityRules": [rule_to_dict(rule) for rule in report.priority_rules],
        "diffTotals": totals_to_dict(report.diff_totals),
        "fullyResolvedRules": [resolved_rule_to_dict(rule) for rule in report.fully_resolved_rules],
        "prioritySummary": priority_summary_to_dict(report.priority_summary),
        "summary": summary_to_dict(report.summary),
    }


def _require_mapping(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise SnapshotFormatError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _occurrence_from_dict(raw: Any) -> Occurrence:
    raw = _require_mapping(raw, "occurrence")
    if "page" not in raw:
        raise SnapshotFormatError("occurrence is missing its page")
    return Occurrence(
        page=str(raw["page"]),
        html=raw.get("html") or "",
        # Older snapshots stored the selector path pre-joined with " > ".
        target=target_segments(raw.get("target") or ()),
        is_new_occurrence=bool(raw.get("isNewOccurrence", False)),
        is_new_page=bool(raw.get("isNewPage", False)),
    )


def _diff_from_dict(raw: Any) -> Optional[RuleDiff]:
    if not isinstance(raw, dict):
        return None
    return RuleDiff(
        new=int(raw.get("new", 0)),
        resolved=int(raw.get("resolved", 0)),
        unchanged=int(raw.get("unchanged", 0)),
        new_pages=tuple(raw.get("newPages") or ()),
    )


def rule_from_dict(raw: Any) -> AggregatedRule:
    raw = _require_mapping(raw, "rule")
    if not raw.get("id"):
        raise SnapshotFormatError("rule is missing its id")
    occurrences = raw.get("occurrences") or []
    if not isinstance(occurrences, list):
        raise SnapshotFormatError(f"occurrences of rule {raw['id']} must be a list")
    return AggregatedRule(
        id=str(raw["id"]),
        impact=normalize_impact(raw.get("impact")),
        description=raw.get("description") or "",
        help=raw.get("help") or "",
        help_url=raw.get("helpUrl") or "",
        tags=tuple(raw.get("tags") or ()),
        occurrences=tuple(_occurrence_from_dict(o) for o in occurrences),
        pages_affected=int(raw.get("pagesAffected", 0)),
        pages=tuple(str(page) for page in raw.get("pages") or ()),
        density=float(raw.get("density", 0.0)),
        is_systemic=bool(raw.get("isSystemic", False)),
        diff=_diff_from_dict(raw.get("diff")),
        is_new_rule=bool(raw.get("isNewRule", False)),
        priority_score=int(raw.get("priorityScore", 0)),
        display_name=raw.get("displayName") or raw.get("friendlyName"),
        wcag_level=raw.get("wcagLevel"),
        resources=tuple(
            Resource(label=r.get("label") or "", url=r.get("url") or "")
            for r in raw.get("resources") or ()
            if isinstance(r, dict)
        ),
    )


def snapshot_from_dict(raw: Any) -> Snapshot:
    raw = _require_mapping(raw, "snapshot")
    rules = raw.get("rules")
    if not isinstance(rules, list):
        raise SnapshotFormatError("snapshot has no rules list")
    totals = raw.get("diffTotals") or {}
    pages_audited = raw.get("pagesAudited", raw.get("pageCount"))
    urls = tuple(raw.get("urls") or ())
    return Snapshot(
        site=raw.get("site") or "",
        timestamp=raw.get("timestamp") or "",
        pages_audited=int(pages_audited) if pages_audited is not None else len(urls),
        rules=tuple(rule_from_dict(rule) for rule in rules),
        diff_totals=DiffTotals(
            new=int(totals.get("new", totals.get("newViolations", 0))),
            resolved=int(totals.get("resolved", totals.get("resolvedViolations", 0))),
            unchanged=int(totals.get("unchanged", 0)),
        ),
        urls=urls,
    )


def encode_snapshot(snapshot: Snapshot) -> bytes:
    return json.dumps(snapshot_to_dict(snapshot), indent=2).encode("utf-8")


def decode_snapshot(data: bytes) -> Snapshot:
    try:
        raw = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SnapshotFormatError(f"snapshot is not valid JSON: {exc}") from exc
    try:
        return snapshot_from_dict(raw)
    except SnapshotFormatError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise SnapshotFormatError(f"snapshot has invalid field values: {exc}") from exc
