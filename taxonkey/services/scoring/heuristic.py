"""Heuristic scorer: fraction of evaluated traits that match.

    score = matches / max(1, support)

support counts the observed traits for which the taxon has data. In strict
mode any contradiction eliminates the taxon (score 0, excluded); in
lenient mode a contradiction simply does not count as a match.
"""

from typing import Dict, List, Optional

from taxonkey.domain.models.evaluation import TaxonScore
from taxonkey.domain.models.matrix import Matrix
from taxonkey.domain.models.options import AlgoOptions
from taxonkey.services.matching.matcher import match_observation
from taxonkey.services.matching.observations import Observation
from taxonkey.services.scoring.base import TaxonScorer, finalize_scores
from taxonkey.services.scoring.math_utils import normalize


class HeuristicScorer(TaxonScorer):
    """Match-ratio scorer with strict elimination."""

    def score(
        self,
        matrix: Matrix,
        observations: Dict[str, Observation],
        options: AlgoOptions,
        strict: bool = False,
        previous_scores: Optional[Dict[str, float]] = None,
    ) -> List[TaxonScore]:
        if not matrix.taxa:
            return []

        trait_map = matrix.trait_map()
        evaluated = [
            (trait_map[trait_id], obs)
            for trait_id, obs in observations.items()
            if not obs.is_na and trait_id in trait_map
        ]

        scores: List[TaxonScore] = []
        for taxon in matrix.taxa:
            matches = conflicts = 0
            for trait, obs in evaluated:
                result = match_observation(trait, obs, taxon, options)
                if result.is_agree:
                    matches += 1
                elif result.is_conflict:
                    conflicts += 1

            support = matches + conflicts
            excluded = strict and conflicts > 0
            value = 0.0 if excluded else matches / max(1, support)
            scores.append(
                TaxonScore(
                    taxon_id=taxon.id,
                    taxon_name=taxon.name,
                    post=value,
                    used=support,
                    conflicts=conflicts,
                    match=matches,
                    support=support,
                    excluded=excluded,
                )
            )

        return finalize_scores(scores, previous_scores)

    def distribution(self, scores: List[TaxonScore]) -> Dict[str, float]:
        """Match ratios normalised to sum to 1 (uniform if all are zero)."""
        weights = normalize([s.post for s in scores])
        return {s.taxon_id: float(w) for s, w in zip(scores, weights)}
