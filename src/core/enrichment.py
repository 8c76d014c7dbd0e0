"""Attach friendly names, WCAG levels, and help links to aggregated rules."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Mapping, Optional

from core.models import AggregatedRule, Resource

BEST_PRACTICE = "Best Practice"

# Checked from strictest to loosest; the first level with a matching tag wins.
WCAG_LEVEL_TAGS = (
    ("AAA", {"wcag2aaa", "wcag21aaa", "wcag22aaa"}),
    ("AA", {"wcag2aa", "wcag21aa", "wcag22aa"}),
    ("A", {"wcag2a", "wcag21a", "wcag22a"}),
)

HELP_LINK_LABEL = "Deque University"


def wcag_level(tags: Iterable[str]) -> str:
    tag_set = set(tags or ())
    for level, level_tags in WCAG_LEVEL_TAGS:
        if tag_set & level_tags:
            return level
    return BEST_PRACTICE


def build_resources(rule: AggregatedRule, wcag_tags: Mapping[str, dict]) -> tuple[Resource, ...]:
    """Return the help link followed by any WCAG references for the rule's tags."""

    resources: List[Resource] = []
    seen_urls: set[str] = set()
    if rule.help_url:
        resources.append(Resource(label=HELP_LINK_LABEL, url=rule.help_url))
        seen_urls.add(rule.help_url)
    for tag in rule.tags:
        info = wcag_tags.get(tag) or {}
        url = info.get("w3cURL")
        if not url or url in seen_urls:
            continue
        seen_urls.add(url)
        resources.append(Resource(label=info.get("title") or tag, url=url))
    return tuple(resources)


def display_name_for(rule_id: str, display_names: Optional[Mapping[str, str]]) -> str:
    if display_names:
        return display_names.get(rule_id) or rule_id
    return rule_id


def enrich_rules(
    rules: Iterable[AggregatedRule],
    display_names: Optional[Mapping[str, str]] = None,
    wcag_tags: Optional[Mapping[str, dict]] = None,
) -> tuple[AggregatedRule, ...]:
    wcag_tags = wcag_tags or {}
    return tuple(
        replace(
            rule,
            display_name=display_name_for(rule.id, display_names),
            wcag_level=wcag_level(rule.tags),
            resources=build_resources(rule, wcag_tags),
        )
        for rule in rules
    )
