"""Plain-text run summaries for the command line.

Keeping formatting here keeps the engine free of presentation decisions,
including whether a small audit shows a priority section at all.
"""

from __future__ import annotations

from typing import Iterable, List

from core.config import RankingConfig
from core.models import AggregatedRule, AuditReport, HistoryPoint

DIVIDER = "──────────────"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _rule_label(rule: AggregatedRule) -> str:
    return rule.display_name or rule.id


def _format_rule_line(rule: AggregatedRule) -> str:
    flags: List[str] = []
    if rule.is_systemic:
        flags.append("systemic")
    if rule.is_new_rule:
        flags.append("new rule")
    if rule.diff and rule.diff.new:
        flags.append(f"+{rule.diff.new}")
    if rule.diff and rule.diff.resolved:
        flags.append(f"-{rule.diff.resolved}")
    suffix = f" [{', '.join(flags)}]" if flags else ""
    return (
        f"  {rule.impact:<9} {_rule_label(rule)}: "
        f"{_plural(rule.occurrence_count, 'occurrence')} on {_plural(rule.pages_affected, 'page')}{suffix}"
    )


def format_report(report: AuditReport, min_priority_rules: int = RankingConfig.min_rules) -> str:
    """Return the console summary for one run.

    The priority section is shown only when the run violated at least
    ``min_priority_rules`` rules.
    """

    totals = report.diff_totals
    lines = [
        f"Site:          {report.snapshot.site}",
        f"Pages audited: {report.pages_audited}",
        f"Rules violated: {len(report.rules)}",
        f"Changes:       {totals.new} new, {totals.resolved} resolved, {totals.unchanged} unchanged",
        DIVIDER,
    ]
    lines.extend(_format_rule_line(rule) for rule in report.rules)

    if report.fully_resolved_rules:
        lines.extend([DIVIDER, "Fully resolved:"])
        lines.extend(f"  {rule.impact:<9} {rule.display_name}" for rule in report.fully_resolved_rules)

    if report.priority_rules and len(report.rules) >= min_priority_rules:
        names = ", ".join(_rule_label(rule) for rule in report.priority_rules)
        summary = report.priority_summary
        lines.extend(
            [
                DIVIDER,
                "Fix these first:",
                f"  {names}",
                f"  covers {summary.percent_of_violations}% of violations "
                f"and {summary.percent_of_pages}% of pages",
            ]
        )

    if report.snapshot_name:
        lines.extend([DIVIDER, f"Snapshot: {report.snapshot_name}"])
    return "\n".join(lines)


def format_history(points: Iterable[HistoryPoint]) -> str:
    points = list(points)
    if not points:
        return "No history found."
    lines = [f"{'date':<12}{'violations':>12}{'penalty':>12}{'pages':>8}"]
    for point in points:
        lines.append(
            f"{point.date:<12}{point.violation_count:>12}{point.total_penalty:>12}{point.page_count:>8}"
        )
    return "\n".join(lines)
