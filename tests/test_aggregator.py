from __future__ import annotations

from core.aggregator import aggregate_rules
from core.models import MatchedElement, ScanRecord, Violation


def _violation(rule_id: str, impact: str, *targets: str, html: str = "<img src='a.png'>") -> Violation:
    return Violation(
        rule_id=rule_id,
        impact=impact,
        description=f"{rule_id} description",
        help_url=f"https://dequeuniversity.com/rules/axe/4.8/{rule_id}",
        tags=("wcag2a",),
        nodes=tuple(MatchedElement(html=html, target=(target,)) for target in targets),
    )


def _page(url: str, *violations: Violation) -> ScanRecord:
    return ScanRecord(url=url, violations=violations)


def test_empty_input_yields_empty_rules_and_zero_summary() -> None:
    result = aggregate_rules([])
    assert result.rules == ()
    assert result.pages_audited == 0
    assert result.summary.top_rule_ids == ()
    assert result.summary.violation_percentage == 0
    assert result.summary.page_percentage == 0


def test_groups_occurrences_by_rule_across_pages() -> None:
    records = [
        _page("https://example.com/", _violation("image-alt", "critical", "img.a", "img.b")),
        _page("https://example.com/about", _violation("image-alt", "critical", "img.c")),
    ]
    result = aggregate_rules(records)

    assert [rule.id for rule in result.rules] == ["image-alt"]
    rule = result.rules[0]
    assert rule.occurrence_count == 3
    assert rule.pages_affected == 2
    assert rule.density == 1.0
    assert rule.is_systemic is True
    assert {o.page for o in rule.occurrences} == {"https://example.com/", "https://example.com/about"}


def test_occurrence_html_keeps_only_opening_tag() -> None:
    records = [
        _page(
            "https://example.com/",
            _violation("link-name", "serious", "a.icon", html="<a class=\"icon\"><svg></svg></a>"),
        )
    ]
    rule = aggregate_rules(records).rules[0]
    assert rule.occurrences[0].html == "<a class=\"icon\">"
    assert rule.occurrences[0].target == ("a.icon",)


def test_systemic_requires_more_than_one_page() -> None:
    single = aggregate_rules([_page("https://example.com/", _violation("label", "serious", "input"))])
    assert single.rules[0].pages_affected == single.pages_audited == 1
    assert single.rules[0].is_systemic is False

    partial = aggregate_rules(
        [
            _page("https://example.com/", _violation("label", "serious", "input")),
            _page("https://example.com/a"),
            _page("https://example.com/b", _violation("label", "serious", "input")),
        ]
    )
    rule = partial.rules[0]
    assert rule.pages_affected == 2
    assert partial.pages_audited == 3
    assert rule.density == 0.67
    assert rule.is_systemic is False


def test_sort_by_impact_then_systemic_then_frequency() -> None:
    records = [
        _page(
            "https://example.com/",
            _violation("minor-many", "minor", "a", "b", "c", "d"),
            _violation("serious-few", "serious", "a"),
            _violation("serious-many", "serious", "a", "b", "c"),
            _violation("serious-systemic", "serious", "nav"),
            _violation("critical-one", "critical", "x"),
            _violation("odd", "bogus", "a", "b", "c", "d", "e"),
        ),
        _page("https://example.com/2", _violation("serious-systemic", "serious", "nav")),
    ]
    ids = [rule.id for rule in aggregate_rules(records).rules]
    assert ids == [
        "critical-one",
        "serious-systemic",
        "serious-many",
        "serious-few",
        "minor-many",
        "odd",
    ]


def test_unknown_impact_is_kept_and_ranked_last() -> None:
    records = [
        _page(
            "https://example.com/",
            _violation("mystery", "unknown", "a", "b", "c"),
            _violation("tiny", "minor", "a"),
        )
    ]
    result = aggregate_rules(records)
    assert [rule.id for rule in result.rules] == ["tiny", "mystery"]
    assert result.rules[-1].impact == "unknown"


def test_summary_percentages_for_top_five() -> None:
    violations = [_violation(f"rule-{i}", "serious", "a") for i in range(6)]
    records = [
        _page("https://example.com/", *violations[:5]),
        _page("https://example.com/other", violations[5]),
        _page("https://example.com/empty"),
    ]
    summary = aggregate_rules(records).summary
    assert len(summary.top_rule_ids) == 5
    # 5 of 6 occurrences -> 83.3%; top rules touch 1 of 3 pages -> 33.3%
    assert summary.violation_percentage == 83
    assert summary.page_percentage == 33


def test_duplicate_elements_are_kept_once() -> None:
    records = [
        _page("https://example.com/", _violation("image-alt", "critical", "img.a", "img.a")),
        _page("https://example.com/#dup", _violation("image-alt", "critical", "img.a")),
    ]
    result = aggregate_rules(records)
    assert result.pages_audited == 1
    assert result.rules[0].occurrence_count == 1


def test_error_pages_are_not_audited_pages() -> None:
    records = [
        _page("https://example.com/", _violation("label", "serious", "input")),
        _page("https://example.com/b", _violation("label", "serious", "input")),
        ScanRecord(url="https://example.com/broken", error="Navigation timed out"),
    ]
    result = aggregate_rules(records)
    assert result.pages_audited == 2
    assert result.urls == ("https://example.com/", "https://example.com/b")
    assert result.rules[0].is_systemic is True
