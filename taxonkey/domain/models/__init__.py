"""Domain models package."""

from .matrix import (
    ContinuousRange,
    Dependency,
    Matrix,
    Taxon,
    Ternary,
    Trait,
    TraitKind,
)
from .options import AlgoOptions, CategoricalAlgo, RecommendationStrategy
from .selection import Selection
from .evaluation import (
    Algorithm,
    EvaluationRequest,
    EvaluationResult,
    Justification,
    JustificationItem,
    JustificationStatus,
    MatchOutcome,
    MatchResult,
    Mode,
    StateProb,
    TaxonScore,
    TraitSuggestion,
)

__all__ = [
    "ContinuousRange",
    "Dependency",
    "Matrix",
    "Taxon",
    "Ternary",
    "Trait",
    "TraitKind",
    "AlgoOptions",
    "CategoricalAlgo",
    "RecommendationStrategy",
    "Selection",
    "Algorithm",
    "EvaluationRequest",
    "EvaluationResult",
    "Justification",
    "JustificationItem",
    "JustificationStatus",
    "MatchOutcome",
    "MatchResult",
    "Mode",
    "StateProb",
    "TaxonScore",
    "TraitSuggestion",
]
