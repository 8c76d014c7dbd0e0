"""Core audit run pipeline.

This module is integration-agnostic. It only relies on the snapshot store
port, so the same run logic works against local files or any other backend.

A run follows a strict order:
1) Aggregate scan records into rules
2) Enrich rules with names, WCAG levels and resources
3) Load the previous snapshot (explicit name or the site's latest)
4) Diff against it
5) Score priorities
6) Persist the new snapshot and move the latest pointer (last action)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from core.aggregator import aggregate_rules
from core.config import RankingConfig
from core.differ import diff_rules
from core.enrichment import enrich_rules
from core.models import AuditReport, ScanRecord, Snapshot
from core.ports import SnapshotStorePort
from core.ranker import rank_priorities
from core.site_keys import build_site_slug

LOGGER = logging.getLogger(__name__)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AuditEngine:
    """Orchestrates aggregation, diffing, ranking, and persistence."""

    def __init__(
        self,
        store: SnapshotStorePort,
        display_names: Optional[Mapping[str, str]] = None,
        wcag_tags: Optional[Mapping[str, dict]] = None,
        ranking: Optional[RankingConfig] = None,
    ) -> None:
        self._store = store
        self._display_names = dict(display_names or {})
        self._wcag_tags = dict(wcag_tags or {})
        self._ranking = ranking or RankingConfig()

    def _load_previous(self, site_id: str, previous_name: Optional[str]) -> Optional[Snapshot]:
        # A broken baseline must never abort the run; it just means "no baseline".
        try:
            if previous_name:
                previous = self._store.load(previous_name)
                if previous is None:
                    LOGGER.warning("Previous snapshot %s not found; running as baseline", previous_name)
                return previous
            return self._store.get(site_id)
        except (OSError, ValueError):
            LOGGER.warning("Could not load previous snapshot for %s", site_id, exc_info=True)
            return None

    def run(
        self,
        site: str,
        records: Iterable[ScanRecord],
        previous_name: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> AuditReport:
        """Process one run for ``site`` and persist its snapshot."""

        site_id = build_site_slug(site)
        aggregation = aggregate_rules(records, top_n=self._ranking.top_n)
        rules = enrich_rules(aggregation.rules, self._display_names, self._wcag_tags)

        previous = self._load_previous(site_id, previous_name)
        diff = diff_rules(rules, previous, self._display_names)
        priority = rank_priorities(diff.rules, aggregation.pages_audited, self._ranking.top_n)

        snapshot = Snapshot(
            site=site,
            timestamp=timestamp or utc_timestamp(),
            pages_audited=aggregation.pages_audited,
            rules=priority.rules,
            diff_totals=diff.totals,
            urls=aggregation.urls,
        )

        # Writing the snapshot and moving the latest pointer is the final step,
        # after every computation has succeeded.
        snapshot_name = self._store.put(site_id, snapshot)
        LOGGER.info(
            "Saved snapshot %s for %s (%s rules, %s pages)",
            snapshot_name,
            site,
            len(snapshot.rules),
            snapshot.pages_audited,
        )

        return AuditReport(
            rules=priority.rules,
            priority_rules=priority.priority_rules,
            diff_totals=diff.totals,
            fully_resolved_rules=diff.fully_resolved_rules,
            priority_summary=priority.summary,
            pages_audited=aggregation.pages_audited,
            summary=aggregation.summary,
            snapshot=snapshot,
            snapshot_name=snapshot_name,
        )
