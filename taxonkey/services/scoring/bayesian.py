"""Bayesian scorer with a noisy-observation likelihood.

For each observed trait t and taxon i the matcher yields an outcome and a
graded strength s. The likelihood of the observation given the taxon is:

    p_hat = (a0 + kappa * s + lambda * c) / (a0 + b0 + kappa + lambda)
    l     = alpha + (1 - alpha - beta) * p_hat

where c is the annotation confidence directed by the outcome (c on
agreement, 1 - c on a conflict). alpha (false positive) and beta (false
negative) bound l to [alpha, 1 - beta]. l is floored at a tiny constant
(conflict_floor), so no single observation zeroes a taxon, even with
alpha = 0. A conflict is further pulled down towards the floor:

    l_conflict = l ** (1 - cp) * floor ** cp      (l >= floor)

which never exceeds l and is non-increasing in cp. A taxon without data
for an observed trait gets the floored prior-mean likelihood times gamma
(sparse-data penalty). Log-likelihoods are summed with log(prior) and
normalised by softmax with max subtraction.
"""

import math
from typing import Dict, List, Optional

import structlog

from taxonkey.domain.models.evaluation import MatchResult, TaxonScore
from taxonkey.domain.models.matrix import Matrix
from taxonkey.domain.models.options import AlgoOptions
from taxonkey.services.matching.matcher import match_observation
from taxonkey.services.matching.observations import Observation
from taxonkey.services.scoring.base import TaxonScorer, finalize_scores
from taxonkey.services.scoring.math_utils import softmax_log

logger = structlog.get_logger(__name__)

DEFAULT_CONFLICT_FLOOR = 1e-6


def smoothed_probability(strength: float, confidence: float, options: AlgoOptions) -> float:
    """Beta-Bernoulli smoothed agreement probability p_hat."""
    denom = options.a0 + options.b0 + options.kappa + options.lambda_
    if denom <= 0:
        return strength
    return (options.a0 + options.kappa * strength + options.lambda_ * confidence) / denom


def prior_mean(options: AlgoOptions) -> float:
    denom = options.a0 + options.b0
    if denom <= 0:
        return 0.5
    return options.a0 / denom


def noisy_likelihood(p_hat: float, alpha: float, beta: float) -> float:
    return alpha + (1.0 - alpha - beta) * p_hat


class BayesianScorer(TaxonScorer):
    """Ranks taxa by posterior probability under the noise model.

    Contradictions are softened through conflictPenalty rather than
    eliminating taxa, so `strict` has no effect here.
    """

    def __init__(self, config: Optional[Dict] = None):
        super().__init__(config)
        self.conflict_floor = float(self.config.get("conflict_floor", DEFAULT_CONFLICT_FLOOR))

    def likelihood(
        self,
        result: MatchResult,
        options: AlgoOptions,
        taxon_id: str,
        trait_id: str,
    ) -> float:
        """Likelihood of one observation under one taxon.

        Always positive: the noisy likelihood is floored at conflict_floor
        before the sparse-data or conflict penalties apply.
        """
        alpha = options.alpha_for(taxon_id, trait_id)
        beta = options.beta_for(taxon_id, trait_id)

        if result.is_unknown:
            base = max(noisy_likelihood(prior_mean(options), alpha, beta), self.conflict_floor)
            return options.gamma_na_penalty * base

        confidence = options.confidence_for(taxon_id, trait_id)
        directed = confidence if result.is_agree else 1.0 - confidence
        base = noisy_likelihood(smoothed_probability(result.strength, directed, options), alpha, beta)
        base = max(base, self.conflict_floor)

        if result.is_agree:
            return base
        # base ** (1 - cp) * floor ** cp, written so it cannot rise above base
        cp = options.conflict_penalty
        return base * (self.conflict_floor / base) ** cp

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

        log_weights: List[float] = []
        scores: List[TaxonScore] = []
        for taxon in matrix.taxa:
            prior = options.prior_for(taxon.id)
            log_w = math.log(prior) if prior > 0 else -math.inf
            agree = conflicts = 0

            for trait, obs in evaluated:
                result = match_observation(trait, obs, taxon, options)
                if result.is_agree:
                    agree += 1
                elif result.is_conflict:
                    conflicts += 1
                ll = self.likelihood(result, options, taxon.id, trait.id)
                log_w += math.log(ll) if ll > 0 else -math.inf

            log_weights.append(log_w)
            used = agree + conflicts
            scores.append(
                TaxonScore(
                    taxon_id=taxon.id,
                    taxon_name=taxon.name,
                    post=0.0,
                    used=used,
                    conflicts=conflicts,
                    match=agree,
                    support=used,
                )
            )

        posterior = softmax_log(log_weights)
        for s, p in zip(scores, posterior):
            s.post = float(p)

        logger.debug(
            "bayes_scored",
            taxa=len(scores),
            evaluated_traits=len(evaluated),
            eliminated=sum(1 for w in log_weights if w == -math.inf),
        )

        return finalize_scores(scores, previous_scores)
