"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RankingConfig:
    """Priority selection settings.

    ``min_rules`` is only a display threshold; scores are always computed.
    """

    top_n: int = 5
    min_rules: int = 5


@dataclass(frozen=True)
class HistoryConfig:
    """How many trend points to keep per site."""

    limit: int = 10
