"""Binary (and resolved derived) trait matching."""

from taxonkey.domain.models.evaluation import (
    UNKNOWN_MATCH,
    MatchOutcome,
    MatchResult,
)
from taxonkey.domain.models.matrix import Ternary


def match_binary(observed: Ternary, recorded: Ternary) -> MatchResult:
    """Agree on equal Yes/No, conflict on opposite, unknown if either side is NA.

    Strength is 1 for agreement and 0 for a conflict.
    """
    if observed == Ternary.NA or recorded == Ternary.NA:
        return UNKNOWN_MATCH
    if observed == recorded:
        return MatchResult(outcome=MatchOutcome.AGREE, strength=1.0)
    return MatchResult(outcome=MatchOutcome.CONFLICT, strength=0.0)
