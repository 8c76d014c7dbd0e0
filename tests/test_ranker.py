from __future__ import annotations

from core.aggregator import aggregate_rules
from core.models import AggregatedRule, Occurrence
from core.ranker import priority_score, rank_priorities
from core.scan_records import parse_scan_records


def _rule(rule_id: str, impact: str, pages: int, per_page: int = 1) -> AggregatedRule:
    occurrences = tuple(
        Occurrence(page=f"https://example.com/p{page}", html="<div>", target=(f"#n{index}",))
        for page in range(pages)
        for index in range(per_page)
    )
    return AggregatedRule(id=rule_id, impact=impact, occurrences=occurrences, pages_affected=pages)


def test_priority_example_scores() -> None:
    rules = [_rule("minor-rule", "minor", 1), _rule("serious-rule", "serious", 5), _rule("critical-rule", "critical", 1)]
    assert [priority_score(rule) for rule in rules] == [11, 1005, 10001]

    result = rank_priorities(rules, pages_audited=5)
    assert [rule.id for rule in result.priority_rules] == ["critical-rule", "serious-rule", "minor-rule"]
    assert [rule.priority_score for rule in result.rules] == [11, 1005, 10001]


def test_score_is_monotonic_in_severity_for_equal_reach() -> None:
    impacts = ["unknown", "minor", "moderate", "serious", "critical"]
    scores = [priority_score(_rule("r", impact, 3)) for impact in impacts]
    assert scores == sorted(scores)
    assert scores[0] == 3


def test_top_five_and_summary() -> None:
    rules = [_rule(f"moderate-{i}", "moderate", 1) for i in range(6)]
    rules.append(_rule("critical-wide", "critical", 4, per_page=2))
    result = rank_priorities(rules, pages_audited=10)

    assert len(result.priority_rules) == 5
    assert result.priority_rules[0].id == "critical-wide"
    # ties keep input order
    assert [rule.id for rule in result.priority_rules[1:]] == [f"moderate-{i}" for i in range(4)]
    # 8 + 4 of 14 occurrences; the moderate rules all sit on p0, inside critical-wide's 4 pages
    assert result.summary.percent_of_violations == 86
    assert result.summary.percent_of_pages == 40


def test_empty_and_zero_pages_do_not_divide_by_zero() -> None:
    result = rank_priorities([], pages_audited=0)
    assert result.priority_rules == ()
    assert result.summary.percent_of_violations == 0
    assert result.summary.percent_of_pages == 0


def test_input_rules_are_not_mutated() -> None:
    rule = _rule("image-alt", "critical", 2)
    rank_priorities([rule], pages_audited=2)
    assert rule.priority_score == 0


def test_page_share_uses_the_rule_page_set() -> None:
    rule = AggregatedRule(
        id="landmark-one-main",
        impact="moderate",
        pages_affected=2,
        pages=("https://example.com", "https://example.com/about"),
    )
    result = rank_priorities([rule], pages_audited=2)
    assert result.summary.percent_of_pages == 100


def test_page_share_matches_aggregation_summary() -> None:
    raw = [
        {"url": "https://example.com/", "violations": [{"id": "region", "impact": "moderate", "nodes": [{"target": ["div"]}]}]},
        {"url": "https://example.com/about#top", "violations": [{"id": "region", "impact": "moderate", "nodes": [{"target": ["div"]}]}]},
        {"url": "https://example.com/contact", "violations": []},
    ]
    aggregation = aggregate_rules(parse_scan_records(raw))
    result = rank_priorities(aggregation.rules, aggregation.pages_audited)

    assert aggregation.rules[0].pages == ("https://example.com", "https://example.com/about")
    assert result.summary.percent_of_pages == aggregation.summary.page_percentage == 67
