"""Taxon scorers: Bayesian (default) and heuristic fallback."""

from taxonkey.services.scoring.base import TaxonScorer, finalize_scores
from taxonkey.services.scoring.bayesian import BayesianScorer
from taxonkey.services.scoring.heuristic import HeuristicScorer

__all__ = [
    "TaxonScorer",
    "BayesianScorer",
    "HeuristicScorer",
    "finalize_scores",
]
