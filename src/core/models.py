"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the scanner's JSON shape or to any storage format. They are
frozen: later stages produce enriched copies with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class MatchedElement:
    """One element the scanner flagged for a rule."""

    html: str
    target: tuple[str, ...]


@dataclass(frozen=True)
class Violation:
    """A rule violated on one page, with every matched element."""

    rule_id: str
    impact: str
    description: str = ""
    help: str = ""
    help_url: str = ""
    tags: tuple[str, ...] = ()
    nodes: tuple[MatchedElement, ...] = ()


@dataclass(frozen=True)
class ScanRecord:
    """One audited page as produced by the scanner."""

    url: str
    violations: tuple[Violation, ...] = ()
    error: Optional[str] = None
    timestamp: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class Occurrence:
    """One concrete element violating a rule on one page."""

    page: str
    html: str
    target: tuple[str, ...]
    is_new_occurrence: bool = False
    is_new_page: bool = False


@dataclass(frozen=True)
class RuleDiff:
    new: int = 0
    resolved: int = 0
    unchanged: int = 0
    new_pages: tuple[str, ...] = ()


@dataclass(frozen=True)
class Resource:
    label: str
    url: str


@dataclass(frozen=True)
class AggregatedRule:
    """All occurrences of one rule across the audited pages."""

    id: str
    impact: str
    description: str = ""
    help: str = ""
    help_url: str = ""
    tags: tuple[str, ...] = ()
    occurrences: tuple[Occurrence, ...] = ()
    pages_affected: int = 0
    # Normalized URLs of the affected pages.
    pages: tuple[str, ...] = ()
    density: float = 0.0
    is_systemic: bool = False
    diff: Optional[RuleDiff] = None
    is_new_rule: bool = False
    priority_score: int = 0
    display_name: Optional[str] = None
    wcag_level: Optional[str] = None
    resources: tuple[Resource, ...] = ()

    @property
    def occurrence_count(self) -> int:
        return len(self.occurrences)


@dataclass(frozen=True)
class AggregationSummary:
    top_rule_ids: tuple[str, ...] = ()
    violation_percentage: int = 0
    page_percentage: int = 0


@dataclass(frozen=True)
class AggregationResult:
    rules: tuple[AggregatedRule, ...]
    summary: AggregationSummary
    pages_audited: int
    urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class DiffTotals:
    new: int = 0
    resolved: int = 0
    unchanged: int = 0


@dataclass(frozen=True)
class ResolvedRule:
    """A rule present in the previous snapshot and absent from the current run."""

    id: str
    impact: str
    display_name: str


@dataclass(frozen=True)
class DiffResult:
    rules: tuple[AggregatedRule, ...]
    totals: DiffTotals
    fully_resolved_rules: tuple[ResolvedRule, ...] = ()


@dataclass(frozen=True)
class PrioritySummary:
    percent_of_violations: int = 0
    percent_of_pages: int = 0


@dataclass(frozen=True)
class PriorityResult:
    rules: tuple[AggregatedRule, ...]
    priority_rules: tuple[AggregatedRule, ...]
    summary: PrioritySummary


@dataclass(frozen=True)
class Snapshot:
    """The persisted result of one audit run for one site."""

    site: str
    timestamp: str
    pages_audited: int
    rules: tuple[AggregatedRule, ...] = ()
    diff_totals: DiffTotals = field(default_factory=DiffTotals)
    urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class HistoryPoint:
    date: str
    violation_count: int
    total_penalty: int
    page_count: int
    timestamp_epoch: int


@dataclass(frozen=True)
class AuditReport:
    """Everything a report renderer needs for one run."""

    rules: tuple[AggregatedRule, ...]
    priority_rules: tuple[AggregatedRule, ...]
    diff_totals: DiffTotals
    fully_resolved_rules: tuple[ResolvedRule, ...]
    priority_summary: PrioritySummary
    pages_audited: int
    summary: AggregationSummary
    snapshot: Snapshot
    snapshot_name: Optional[str] = None
