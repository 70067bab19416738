"""Categorical trait matching (single and multi state).

Two rules, selected by options.categoricalAlgo:

- binary: containment. Agree iff the observed set is a subset of the
  recorded set or the recorded set is a subset of the observed set.
  Strength is 1 or 0.
- jaccard: similarity = |O ∩ R| / |O ∪ R|. Agree iff similarity reaches
  jaccardThreshold; strength is the similarity either way.
"""

from typing import AbstractSet, Iterable

from taxonkey.domain.models.evaluation import (
    UNKNOWN_MATCH,
    MatchOutcome,
    MatchResult,
)
from taxonkey.domain.models.options import CategoricalAlgo


def jaccard_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    """Jaccard index of two state sets. Two empty sets are identical (1.0)."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 1.0
    return len(set_a & set_b) / len(union)


def is_contained(observed: AbstractSet[str], recorded: AbstractSet[str]) -> bool:
    return bool(observed) and bool(recorded) and (observed <= recorded or recorded <= observed)


def match_categorical(
    observed: AbstractSet[str],
    recorded: Iterable[str],
    algo: str = CategoricalAlgo.BINARY.value,
    jaccard_threshold: float = 0.5,
) -> MatchResult:
    """Match observed states against a taxon's recorded states.

    Empty observed or recorded sets are Unknown.
    """
    recorded_set = set(recorded)
    if not observed or not recorded_set:
        return UNKNOWN_MATCH

    if algo == CategoricalAlgo.JACCARD.value:
        similarity = jaccard_similarity(observed, recorded_set)
        outcome = MatchOutcome.AGREE if similarity >= jaccard_threshold else MatchOutcome.CONFLICT
        return MatchResult(outcome=outcome, strength=similarity)

    if is_contained(set(observed), recorded_set):
        return MatchResult(outcome=MatchOutcome.AGREE, strength=1.0)
    return MatchResult(outcome=MatchOutcome.CONFLICT, strength=0.0)
