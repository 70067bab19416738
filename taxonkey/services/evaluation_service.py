"""Evaluation service: one full scoring + recommendation pass.

Pipeline:
1. Clamp the caller's options
2. Resolve the selection into typed observations
3. Score every taxon (Bayesian by default, heuristic on request)
4. Recommend the next traits from the resulting distribution

Stateless and synchronous; safe to call from any thread.
"""

import time
from typing import Optional

import structlog

from taxonkey.core.config import EngineConfig, engine_config
from taxonkey.domain.models.evaluation import (
    Algorithm,
    EvaluationRequest,
    EvaluationResult,
)
from taxonkey.domain.models.matrix import Matrix
from taxonkey.services.matching.observations import resolve_observations
from taxonkey.services.options_validator import clamp_options
from taxonkey.services.recommendation_service import RecommendationService
from taxonkey.services.scoring import BayesianScorer, HeuristicScorer, TaxonScorer

log = structlog.get_logger(__name__)


class EvaluationService:
    """Orchestrates the scorer and the recommender for one request."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        recommender: Optional[RecommendationService] = None,
    ):
        """
        Initialize evaluation service.

        Args:
            config: Engine constants (defaults to config/engine.yaml)
            recommender: Recommendation service (created if omitted)
        """
        self.config = config or engine_config
        self.recommender = recommender or RecommendationService(self.config.recommender)
        self.scorers = {
            Algorithm.BAYES: BayesianScorer(self.config.bayes.model_dump()),
            Algorithm.HEURISTIC: HeuristicScorer(),
        }

        log.info("evaluation_service_initialized", scorers=[a.value for a in self.scorers])

    def scorer_for(self, algo: Algorithm) -> TaxonScorer:
        return self.scorers.get(algo, self.scorers[Algorithm.BAYES])

    def evaluate(self, matrix: Matrix, request: EvaluationRequest) -> EvaluationResult:
        """
        Rank taxa and recommend the next traits.

        Args:
            matrix: Reference matrix (read-only)
            request: Selection, mode, algorithm and options

        Returns:
            EvaluationResult with ranked scores and suggestions
        """
        start = time.perf_counter()

        if not matrix.taxa:
            log.info("evaluation_skipped", reason="empty_matrix")
            return EvaluationResult()

        options = clamp_options(request.opts)
        strict = request.is_strict(options)
        observations = resolve_observations(matrix, request.selection)

        scorer = self.scorer_for(request.algo)
        scores = scorer.score(
            matrix,
            observations,
            options,
            strict=strict,
            previous_scores=request.previous_scores,
        )

        suggestions = []
        if options.want_info_gain:
            suggestions = self.recommender.recommend(
                matrix, observations, scorer.distribution(scores), options
            )

        latency_ms = (time.perf_counter() - start) * 1000
        log.info(
            "evaluation_completed",
            algo=request.algo.value,
            strict=strict,
            taxa=len(scores),
            observed=len(observations),
            suggestions=len(suggestions),
            top_taxon=scores[0].taxon_id if scores else None,
            latency_ms=round(latency_ms, 2),
        )

        return EvaluationResult(scores=scores, suggestions=suggestions)
