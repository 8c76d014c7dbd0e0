"""Impact ranking and weighting helpers (core domain)."""

from __future__ import annotations

from typing import Optional

UNKNOWN_IMPACT = "unknown"

# Lower rank = more urgent. Unknown impacts always sort after every known tier.
IMPACT_ORDER = {"critical": 0, "serious": 1, "moderate": 2, "minor": 3}
UNKNOWN_RANK = len(IMPACT_ORDER)

# Each tier outweighs any realistic page count of the tier below it.
IMPACT_WEIGHTS = {"critical": 10000, "serious": 1000, "moderate": 100, "minor": 10}


def normalize_impact(value: Optional[str]) -> str:
    """Return a known impact name, or "unknown" for anything else."""

    if not isinstance(value, str):
        return UNKNOWN_IMPACT
    lowered = value.strip().lower()
    if lowered in IMPACT_ORDER:
        return lowered
    return UNKNOWN_IMPACT


def impact_rank(impact: Optional[str]) -> int:
    return IMPACT_ORDER.get(normalize_impact(impact), UNKNOWN_RANK)


def impact_weight(impact: Optional[str]) -> int:
    return IMPACT_WEIGHTS.get(normalize_impact(impact), 0)


def percent_of(part: int, whole: int) -> int:
    """Return ``part / whole`` as a whole percentage, rounding half up.

    A zero (or negative) denominator yields 0 instead of raising.
    """

    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)
