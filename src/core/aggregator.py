"""Group per-page violations into one record per rule (core domain)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List

from core.models import (
    AggregatedRule,
    AggregationResult,
    AggregationSummary,
    Occurrence,
    ScanRecord,
    Violation,
)
from core.scan_records import strip_children
from core.severity import impact_rank, percent_of
from core.site_keys import normalize_page, occurrence_key

LOGGER = logging.getLogger(__name__)

SUMMARY_TOP_N = 5


@dataclass
class _RuleAccumulator:
    """Mutable per-call state for one rule; never escapes aggregate_rules."""

    first_seen: Violation
    occurrences: List[Occurrence] = field(default_factory=list)
    keys: set[str] = field(default_factory=set)
    pages: set[str] = field(default_factory=set)


def rule_sort_key(rule: AggregatedRule) -> tuple[int, bool, int]:
    """Impact first, systemic rules before page-specific ones, then frequency."""

    return (impact_rank(rule.impact), not rule.is_systemic, -rule.occurrence_count)


def _audited_pages(records: Iterable[ScanRecord]) -> list[str]:
    seen: set[str] = set()
    urls: list[str] = []
    for record in records:
        if record.is_error:
            continue
        normalized = normalize_page(record.url)
        if normalized in seen:
            continue
        seen.add(normalized)
        urls.append(record.url)
    return urls


def affected_pages(rule: AggregatedRule) -> set[str]:
    """Normalized pages a rule touches; derived from occurrences for older snapshots."""

    if rule.pages:
        return set(rule.pages)
    return {normalize_page(o.page) for o in rule.occurrences}


def _build_summary(
    rules: List[AggregatedRule],
    total_occurrences: int,
    total_pages: int,
    top_n: int,
) -> AggregationSummary:
    top_rules = rules[:top_n]
    top_occurrences = sum(rule.occurrence_count for rule in top_rules)
    top_pages: set[str] = set()
    for rule in top_rules:
        top_pages.update(affected_pages(rule))
    return AggregationSummary(
        top_rule_ids=tuple(rule.id for rule in top_rules),
        violation_percentage=percent_of(top_occurrences, total_occurrences),
        page_percentage=percent_of(len(top_pages), total_pages),
    )


def aggregate_rules(
    records: Iterable[ScanRecord],
    strip_html: Callable[[str], str] = strip_children,
    top_n: int = SUMMARY_TOP_N,
) -> AggregationResult:
    """Aggregate scan records into a ranked rule catalog.

    Every matched element becomes one Occurrence. An element reported twice
    for the same rule on the same page (same selector path) is kept once, so
    ``(page, rule id, target)`` stays unique within the result.
    """

    records = list(records)
    urls = _audited_pages(records)
    total_pages = len(urls)

    accumulators: dict[str, _RuleAccumulator] = {}
    duplicates = 0
    for record in records:
        if record.is_error:
            continue
        for violation in record.violations:
            entry = accumulators.get(violation.rule_id)
            if entry is None:
                entry = _RuleAccumulator(first_seen=violation)
                accumulators[violation.rule_id] = entry
            entry.pages.add(normalize_page(record.url))

            for node in violation.nodes:
                key = occurrence_key(record.url, violation.rule_id, node.target)
                if key in entry.keys:
                    duplicates += 1
                    continue
                entry.keys.add(key)
                entry.occurrences.append(
                    Occurrence(page=record.url, html=strip_html(node.html), target=node.target)
                )

    if duplicates:
        LOGGER.debug("Dropped %s duplicate occurrences during aggregation", duplicates)

    rules: List[AggregatedRule] = []
    for rule_id, entry in accumulators.items():
        pages_affected = len(entry.pages)
        density = pages_affected / total_pages if total_pages else 0.0
        source = entry.first_seen
        rules.append(
            AggregatedRule(
                id=rule_id,
                impact=source.impact,
                description=source.description,
                help=source.help,
                help_url=source.help_url,
                tags=source.tags,
                occurrences=tuple(entry.occurrences),
                pages_affected=pages_affected,
                pages=tuple(sorted(entry.pages)),
                density=round(density, 2),
                # A rule on every page usually lives in a shared header, footer or layout.
                is_systemic=total_pages > 1 and pages_affected == total_pages,
            )
        )

    rules.sort(key=rule_sort_key)

    total_occurrences = sum(rule.occurrence_count for rule in rules)
    summary = _build_summary(rules, total_occurrences, total_pages, top_n)

    LOGGER.info(
        "Aggregated %s occurrences into %s rules across %s pages",
        total_occurrences,
        len(rules),
        total_pages,
    )
    return AggregationResult(
        rules=tuple(rules),
        summary=summary,
        pages_audited=total_pages,
        urls=tuple(urls),
    )
