from __future__ import annotations

from typing import Optional

from core.differ import diff_rules
from core.models import AggregatedRule, Occurrence, RuleDiff, Snapshot

P1 = "https://example.com/"
P2 = "https://example.com/contact"


def _occ(page: str, *target: str, html: str = "<img>") -> Occurrence:
    return Occurrence(page=page, html=html, target=tuple(target))


def _rule(rule_id: str, *occurrences: Occurrence, impact: str = "critical", display_name: Optional[str] = None) -> AggregatedRule:
    return AggregatedRule(
        id=rule_id,
        impact=impact,
        occurrences=occurrences,
        pages_affected=len({o.page for o in occurrences}),
        display_name=display_name,
    )


def _snapshot(*rules: AggregatedRule) -> Snapshot:
    return Snapshot(site="https://example.com", timestamp="2024-01-01T00:00:00.000Z", pages_audited=2, rules=rules)


def test_image_alt_example() -> None:
    previous = _snapshot(_rule("image-alt", _occ(P1, "a"), _occ(P1, "b")))
    current = [_rule("image-alt", _occ(P1, "a"), _occ(P2, "c"))]

    result = diff_rules(current, previous)
    rule = result.rules[0]

    assert rule.diff == RuleDiff(new=1, resolved=1, unchanged=1, new_pages=(P2,))
    assert rule.is_new_rule is False
    by_target = {o.target: o for o in rule.occurrences}
    assert by_target[("a",)].is_new_occurrence is False
    assert by_target[("a",)].is_new_page is False
    assert by_target[("c",)].is_new_occurrence is True
    assert by_target[("c",)].is_new_page is True


def test_first_run_is_baseline() -> None:
    current = [
        _rule("image-alt", _occ(P1, "a"), _occ(P2, "c")),
        _rule("label", _occ(P1, "input"), impact="serious"),
    ]
    result = diff_rules(current, None)

    assert result.totals.new == 0
    assert result.totals.resolved == 0
    assert result.totals.unchanged == 3
    assert result.fully_resolved_rules == ()
    for rule in result.rules:
        assert rule.is_new_rule is False
        assert rule.diff.new == 0
        assert rule.diff.new_pages == ()
        assert not any(o.is_new_occurrence or o.is_new_page for o in rule.occurrences)


def test_identical_inputs_are_idempotent() -> None:
    rules = [_rule("image-alt", _occ(P1, "a"), _occ(P2, "c")), _rule("label", _occ(P1, "input"))]
    previous = _snapshot(*rules)

    first = diff_rules(rules, previous)
    second = diff_rules(rules, previous)

    assert first == second
    assert first.totals.new == 0
    assert first.totals.resolved == 0
    assert first.totals.unchanged == 3


def test_does_not_mutate_input_rules() -> None:
    rule = _rule("image-alt", _occ(P1, "a"))
    diff_rules([rule], _snapshot())
    assert rule.diff is None
    assert rule.occurrences[0].is_new_occurrence is False


def test_html_formatting_noise_is_not_a_change() -> None:
    previous = _snapshot(_rule("image-alt", _occ(P1, "main", "img", html="<img  src=\"a.png\" >")))
    current = [_rule("image-alt", _occ(P1 + "#hero", "main", "img", html="<img src=\"a.png\">"))]

    rule = diff_rules(current, previous).rules[0]
    assert rule.diff.new == 0
    assert rule.diff.resolved == 0
    assert rule.diff.unchanged == 1


def test_string_targets_in_previous_snapshot_match_segment_lists() -> None:
    previous = _snapshot(_rule("image-alt", Occurrence(page=P1, html="<img>", target=("main > img",))))
    current = [_rule("image-alt", _occ(P1, "main", "img"))]
    assert diff_rules(current, previous).rules[0].diff.unchanged == 1


def test_new_rule_and_fully_resolved_rules() -> None:
    previous = _snapshot(
        _rule("image-alt", _occ(P1, "a")),
        _rule("color-contrast", _occ(P1, "p"), impact="serious", display_name="Color contrast"),
    )
    current = [_rule("image-alt", _occ(P1, "a")), _rule("label", _occ(P2, "input"), impact="serious")]

    result = diff_rules(current, previous, display_names={"label": "Form labels"})
    by_id = {rule.id: rule for rule in result.rules}

    assert by_id["image-alt"].is_new_rule is False
    assert by_id["label"].is_new_rule is True
    assert by_id["label"].diff.new == 1
    assert by_id["label"].diff.new_pages == (P2,)

    assert len(result.fully_resolved_rules) == 1
    resolved = result.fully_resolved_rules[0]
    assert resolved.id == "color-contrast"
    assert resolved.impact == "serious"
    assert resolved.display_name == "Color contrast"


def test_totals_equal_sum_of_rule_diffs() -> None:
    previous = _snapshot(
        _rule("image-alt", _occ(P1, "a"), _occ(P1, "b"), _occ(P2, "x")),
        _rule("label", _occ(P1, "input")),
    )
    current = [
        _rule("image-alt", _occ(P1, "a"), _occ(P2, "y"), _occ(P2, "z")),
        _rule("label", _occ(P1, "input"), _occ(P2, "select")),
        _rule("region", _occ(P1, "div")),
    ]
    result = diff_rules(current, previous)

    assert result.totals.new == sum(rule.diff.new for rule in result.rules)
    assert result.totals.resolved == sum(rule.diff.resolved for rule in result.rules)
    assert result.totals.unchanged == sum(rule.diff.unchanged for rule in result.rules)
    assert (result.totals.new, result.totals.resolved, result.totals.unchanged) == (4, 2, 2)
