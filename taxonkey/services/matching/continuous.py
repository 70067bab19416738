"""Continuous trait matching with a proportional tolerance band.

The taxon's recorded [lo, hi] is widened by toleranceFactor * span on each
side, where span is the taxon's own range width, or the trait
definition's [minValue, maxValue] width when the taxon records a single
value. A value inside the widened band (inclusive) agrees. Outside it the
outcome is a conflict whose strength decays linearly with the overshoot:

    strength = max(0, 1 - overshoot / span)

Example (range [10, 20], toleranceFactor 0.1):
    span = 10, slack = 1
    9.0 and 21.0 agree; 8.99 and 21.01 conflict with strength 0.999
"""

from typing import Optional, Tuple

from taxonkey.domain.models.evaluation import (
    UNKNOWN_MATCH,
    MatchOutcome,
    MatchResult,
)
from taxonkey.domain.models.matrix import ContinuousRange, Trait


def effective_span(recorded: ContinuousRange, trait: Optional[Trait] = None) -> float:
    """Width used to scale tolerance and overshoot."""
    if recorded.span > 0:
        return recorded.span
    if trait is not None:
        return trait.span
    return 0.0


def tolerance_band(
    recorded: ContinuousRange,
    tolerance_factor: float,
    trait: Optional[Trait] = None,
) -> Tuple[float, float]:
    """Recorded interval widened by the tolerance slack on both sides."""
    slack = tolerance_factor * effective_span(recorded, trait)
    return recorded.min - slack, recorded.max + slack


def match_continuous(
    value: Optional[float],
    recorded: Optional[ContinuousRange],
    tolerance_factor: float,
    trait: Optional[Trait] = None,
) -> MatchResult:
    """Match one measured value against a taxon's recorded range.

    Args:
        value: Observed measurement (None if unset)
        recorded: Taxon's recorded range (None if the taxon has no data)
        tolerance_factor: Fraction of the span accepted as slack
        trait: Trait definition, for the fallback span

    Returns:
        MatchResult; strength 1 on agreement, decaying on conflict
    """
    if value is None or recorded is None:
        return UNKNOWN_MATCH

    lo, hi = tolerance_band(recorded, tolerance_factor, trait)
    if lo <= value <= hi:
        return MatchResult(outcome=MatchOutcome.AGREE, strength=1.0)

    overshoot = lo - value if value < lo else value - hi
    span = effective_span(recorded, trait)
    strength = max(0.0, 1.0 - overshoot / span) if span > 0 else 0.0
    return MatchResult(outcome=MatchOutcome.CONFLICT, strength=strength)
