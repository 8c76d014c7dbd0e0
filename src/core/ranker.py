"""Pick the rules worth fixing first (core domain)."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from core.aggregator import affected_pages
from core.models import AggregatedRule, PriorityResult, PrioritySummary
from core.severity import impact_weight, percent_of

PRIORITY_TOP_N = 5


def priority_score(rule: AggregatedRule) -> int:
    """Severity dominates; reach only breaks ties within one severity tier."""

    return impact_weight(rule.impact) + rule.pages_affected


def rank_priorities(
    rules: Iterable[AggregatedRule],
    pages_audited: int,
    top_n: int = PRIORITY_TOP_N,
) -> PriorityResult:
    """Score every rule and select the ``top_n`` highest scores.

    Scores are computed unconditionally. Whether a small audit shows a
    priority section at all is left to the caller.
    """

    scored = tuple(replace(rule, priority_score=priority_score(rule)) for rule in rules)
    # sorted() is stable, so equal scores keep the aggregator's order.
    top = tuple(sorted(scored, key=lambda rule: rule.priority_score, reverse=True)[:top_n])

    total_occurrences = sum(rule.occurrence_count for rule in scored)
    top_occurrences = sum(rule.occurrence_count for rule in top)
    top_pages: set[str] = set()
    for rule in top:
        top_pages.update(affected_pages(rule))

    summary = PrioritySummary(
        percent_of_violations=percent_of(top_occurrences, total_occurrences),
        percent_of_pages=percent_of(len(top_pages), pages_audited),
    )
    return PriorityResult(rules=scored, priority_rules=top, summary=summary)
