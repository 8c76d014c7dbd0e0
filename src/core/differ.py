"""Classify the current rule set against the previous snapshot (core domain).

Occurrence identity is built from the page, the rule id, and the selector
path only (see ``site_keys.occurrence_key``). The captured HTML snippet is
never part of the key, so whitespace or attribute-order noise in the markup
cannot produce new/resolved pairs for an element that did not change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional

from core.models import (
    AggregatedRule,
    DiffResult,
    DiffTotals,
    Occurrence,
    ResolvedRule,
    RuleDiff,
    Snapshot,
)
from core.site_keys import normalize_page, occurrence_key

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PreviousRule:
    keys: frozenset[str]
    pages: frozenset[str]


def _index_previous(previous: Snapshot) -> dict[str, _PreviousRule]:
    index: dict[str, _PreviousRule] = {}
    for rule in previous.rules:
        keys = {occurrence_key(o.page, rule.id, o.target) for o in rule.occurrences}
        pages = {normalize_page(o.page) for o in rule.occurrences}
        existing = index.get(rule.id)
        if existing is not None:
            # Older files can list the same rule twice; merge rather than overwrite.
            keys |= existing.keys
            pages |= existing.pages
        index[rule.id] = _PreviousRule(keys=frozenset(keys), pages=frozenset(pages))
    return index


def _baseline_rule(rule: AggregatedRule) -> AggregatedRule:
    """First run: everything already present counts as unchanged."""

    occurrences = tuple(
        replace(o, is_new_occurrence=False, is_new_page=False) for o in rule.occurrences
    )
    unchanged = len({occurrence_key(o.page, rule.id, o.target) for o in rule.occurrences})
    return replace(
        rule,
        occurrences=occurrences,
        diff=RuleDiff(new=0, resolved=0, unchanged=unchanged),
        is_new_rule=False,
    )


def _diff_rule(rule: AggregatedRule, prev: Optional[_PreviousRule]) -> AggregatedRule:
    prev_keys = prev.keys if prev else frozenset()
    prev_pages = prev.pages if prev else frozenset()

    keyed = [(occurrence_key(o.page, rule.id, o.target), o) for o in rule.occurrences]
    current_keys = {key for key, _ in keyed}

    new_pages: list[str] = []
    seen_new: set[str] = set()
    for o in rule.occurrences:
        normalized = normalize_page(o.page)
        if normalized in prev_pages or normalized in seen_new:
            continue
        seen_new.add(normalized)
        new_pages.append(o.page)

    occurrences: list[Occurrence] = [
        replace(
            o,
            is_new_occurrence=key not in prev_keys,
            is_new_page=normalize_page(o.page) in seen_new,
        )
        for key, o in keyed
    ]

    return replace(
        rule,
        occurrences=tuple(occurrences),
        diff=RuleDiff(
            new=len(current_keys - prev_keys),
            resolved=len(prev_keys - current_keys),
            unchanged=len(current_keys & prev_keys),
            new_pages=tuple(new_pages),
        ),
        is_new_rule=prev is None,
    )


def _fully_resolved(
    previous: Snapshot,
    current_ids: set[str],
    display_names: Optional[Mapping[str, str]],
) -> tuple[ResolvedRule, ...]:
    resolved: list[ResolvedRule] = []
    reported: set[str] = set()
    for prev_rule in previous.rules:
        if prev_rule.id in current_ids or prev_rule.id in reported:
            continue
        reported.add(prev_rule.id)
        name = display_names.get(prev_rule.id) if display_names else None
        resolved.append(
            ResolvedRule(
                id=prev_rule.id,
                impact=prev_rule.impact,
                display_name=name or prev_rule.display_name or prev_rule.id,
            )
        )
    return tuple(resolved)


def _sum_totals(rules: Iterable[AggregatedRule]) -> DiffTotals:
    new = resolved = unchanged = 0
    for rule in rules:
        if rule.diff is None:
            continue
        new += rule.diff.new
        resolved += rule.diff.resolved
        unchanged += rule.diff.unchanged
    return DiffTotals(new=new, resolved=resolved, unchanged=unchanged)


def diff_rules(
    rules: Iterable[AggregatedRule],
    previous: Optional[Snapshot],
    display_names: Optional[Mapping[str, str]] = None,
) -> DiffResult:
    """Return diff-annotated copies of ``rules`` plus run totals.

    When there is no previous snapshot the run is a baseline: nothing is new,
    nothing is resolved, and every occurrence counts as unchanged.

    Resolved occurrences of rules that disappeared entirely are not part of
    any rule's counts; those rules are reported in ``fully_resolved_rules``.
    """

    rules = tuple(rules)
    if previous is None:
        annotated = tuple(_baseline_rule(rule) for rule in rules)
        LOGGER.info("No previous snapshot; treating %s rules as baseline", len(annotated))
        return DiffResult(rules=annotated, totals=_sum_totals(annotated))

    prev_index = _index_previous(previous)
    annotated = tuple(_diff_rule(rule, prev_index.get(rule.id)) for rule in rules)
    fully_resolved = _fully_resolved(previous, {rule.id for rule in rules}, display_names)
    totals = _sum_totals(annotated)

    LOGGER.info(
        "Diff against %s: new=%s resolved=%s unchanged=%s fully_resolved_rules=%s",
        previous.timestamp or "previous snapshot",
        totals.new,
        totals.resolved,
        totals.unchanged,
        len(fully_resolved),
    )
    return DiffResult(rules=annotated, totals=totals, fully_resolved_rules=fully_resolved)
