"""Base class for taxon scorers.

A scorer turns resolved observations into one TaxonScore per taxon.

Design constraints:
- Pure functions of (matrix, observations, options); no side effects
- Deterministic: identical inputs give identical output
- Output sorted by post descending, ties by taxon id ascending
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from taxonkey.domain.models.evaluation import TaxonScore
from taxonkey.domain.models.matrix import Matrix
from taxonkey.domain.models.options import AlgoOptions
from taxonkey.services.matching.observations import Observation


class TaxonScorer(ABC):
    """Abstract base class for taxon scorers."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize scorer with configuration.

        Args:
            config: Scorer-specific constants (e.g. conflict_floor)
        """
        self.config = config or {}

        # Extract scorer_id from class name
        self.scorer_id = self.__class__.__name__

    @abstractmethod
    def score(
        self,
        matrix: Matrix,
        observations: Dict[str, Observation],
        options: AlgoOptions,
        strict: bool = False,
        previous_scores: Optional[Dict[str, float]] = None,
    ) -> List[TaxonScore]:
        """Score every taxon in the matrix.

        Args:
            matrix: Reference matrix
            observations: Resolved observations keyed by trait id
            options: Clamped algorithm options
            strict: Whether a contradiction eliminates a taxon
            previous_scores: taxonId -> post from the previous evaluation

        Returns:
            One TaxonScore per taxon, ranked
        """
        pass

    def distribution(self, scores: List[TaxonScore]) -> Dict[str, float]:
        """Posterior distribution over taxa for the recommender.

        The default uses post directly; scorers whose post is not a
        distribution override this.
        """
        return {s.taxon_id: s.post for s in scores}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(config={self.config})"


def finalize_scores(
    scores: List[TaxonScore],
    previous_scores: Optional[Dict[str, float]] = None,
) -> List[TaxonScore]:
    """Fill delta and gap, then rank.

    delta is post minus the caller's previous post for the same taxon (0
    when none was supplied); gap is the distance to the top post.
    """
    if not scores:
        return []
    previous = previous_scores or {}
    top = max(s.post for s in scores)
    for s in scores:
        prev = previous.get(s.taxon_id)
        s.delta = s.post - prev if prev is not None else 0.0
        s.gap = top - s.post
    return sorted(scores, key=lambda s: (-s.post, s.taxon_id))
