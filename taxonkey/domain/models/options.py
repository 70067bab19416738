"""
Algorithm options for scoring and recommendation.

AlgoOptions is caller-owned configuration. Fields carry no range
constraints: out-of-range values are accepted here and clamped by the
options validator on every evaluation.

Wire names follow the presentation layer (camelCase, `lambda`); Python
code uses the snake_case field names.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoricalAlgo(str, Enum):
    """Categorical matching rule."""

    BINARY = "binary"
    JACCARD = "jaccard"


class RecommendationStrategy(str, Enum):
    """Recommendation policy: greedy best-case ("breakthrough") or expectation ("stable")."""

    MAX_IG = "max_ig"
    EXPECTED_IG = "expected_ig"


class AlgoOptions(BaseModel):
    """Numeric configuration for the Bayesian/heuristic scorers and recommender."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Observation-noise model
    default_alpha_fp: float = Field(default=0.03, alias="defaultAlphaFP")
    default_beta_fn: float = Field(default=0.07, alias="defaultBetaFN")
    gamma_na_penalty: float = Field(default=0.95, alias="gammaNAPenalty")

    # Beta-Bernoulli smoothing
    kappa: float = 1.0
    lambda_: float = Field(default=1.0, alias="lambda")
    a0: float = 0.5
    b0: float = 0.5

    # Matching
    conflict_penalty: float = Field(default=0.5, alias="conflictPenalty")
    tolerance_factor: float = Field(default=0.1, alias="toleranceFactor")
    categorical_algo: str = Field(default=CategoricalAlgo.BINARY.value, alias="categoricalAlgo")
    jaccard_threshold: float = Field(default=0.5, alias="jaccardThreshold")

    # Recommendation
    want_info_gain: bool = Field(default=True, alias="wantInfoGain")
    use_pragmatic_score: bool = Field(default=False, alias="usePragmaticScore")
    recommendation_strategy: str = Field(
        default=RecommendationStrategy.EXPECTED_IG.value, alias="recommendationStrategy"
    )
    apply_dependencies: bool = Field(default=False, alias="applyDependencies")

    # Sparse overrides keyed by "taxonId:traitId", traitId or taxonId
    alpha_fp: Dict[str, float] = Field(default_factory=dict, alias="alphaFP")
    beta_fn: Dict[str, float] = Field(default_factory=dict, alias="betaFN")
    confidence: Dict[str, float] = Field(default_factory=dict)
    priors: Dict[str, float] = Field(default_factory=dict)

    @property
    def strict(self) -> bool:
        """Strict mode derived from the conflict penalty."""
        return self.conflict_penalty > 0.5

    def alpha_for(self, taxon_id: str, trait_id: str) -> float:
        return lookup_override(self.alpha_fp, taxon_id, trait_id, self.default_alpha_fp)

    def beta_for(self, taxon_id: str, trait_id: str) -> float:
        return lookup_override(self.beta_fn, taxon_id, trait_id, self.default_beta_fn)

    def confidence_for(self, taxon_id: str, trait_id: str) -> float:
        return lookup_override(self.confidence, taxon_id, trait_id, 1.0)

    def prior_for(self, taxon_id: str) -> float:
        return self.priors.get(taxon_id, 1.0)


def lookup_override(
    overrides: Dict[str, float],
    taxon_id: Optional[str],
    trait_id: Optional[str],
    default: float,
) -> float:
    """
    Resolve a sparse override with fallback to the default.

    Lookup order: "taxonId:traitId", traitId, taxonId, default.
    """
    if not overrides:
        return default
    if taxon_id is not None and trait_id is not None:
        key = f"{taxon_id}:{trait_id}"
        if key in overrides:
            return overrides[key]
    if trait_id is not None and trait_id in overrides:
        return overrides[trait_id]
    if taxon_id is not None and taxon_id in overrides:
        return overrides[taxon_id]
    return default
