"""
Evaluation contracts: match outcomes, ranked taxon scores, trait suggestions.

Serialized field names follow the presentation layer's wire format
(camelCase keys, with `max_ig` kept as-is).
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from taxonkey.domain.models.options import AlgoOptions
from taxonkey.domain.models.selection import Selection


class MatchOutcome(str, Enum):
    """Outcome of comparing one observation to one taxon's recorded state."""

    AGREE = "agree"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


class MatchResult(BaseModel):
    """Match outcome plus the graded agreement used by the Bayesian path."""

    model_config = ConfigDict(frozen=True)

    outcome: MatchOutcome
    strength: float = Field(default=0.0, ge=0.0, le=1.0)

    @property
    def is_agree(self) -> bool:
        return self.outcome == MatchOutcome.AGREE

    @property
    def is_conflict(self) -> bool:
        return self.outcome == MatchOutcome.CONFLICT

    @property
    def is_unknown(self) -> bool:
        return self.outcome == MatchOutcome.UNKNOWN


UNKNOWN_MATCH = MatchResult(outcome=MatchOutcome.UNKNOWN, strength=0.0)


class Algorithm(str, Enum):
    BAYES = "bayes"
    HEURISTIC = "heuristic"


class Mode(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"


class TaxonScore(BaseModel):
    """Ranked plausibility of one taxon."""

    model_config = ConfigDict(populate_by_name=True)

    taxon_id: str = Field(alias="taxonId")
    taxon_name: str = Field(alias="taxonName")
    post: float = Field(description="Posterior plausibility (bayes) or match ratio (heuristic)")
    delta: float = Field(default=0.0, description="Change in post since the previous evaluation")
    gap: float = Field(default=0.0, description="Distance from the top-ranked post")
    used: int = 0
    conflicts: int = 0
    match: int = 0
    support: int = 0
    excluded: bool = Field(default=False, description="Eliminated by a contradiction in strict mode")


class StateProb(BaseModel):
    """Weighted share of one trait state among current candidates."""

    state: str
    p: float


class TraitSuggestion(BaseModel):
    """Recommendation statistics for one not-yet-observed trait."""

    model_config = ConfigDict(populate_by_name=True)

    trait_id: str = Field(alias="traitId")
    name: str
    group: str = ""
    ig: float = 0.0
    max_ig: float = 0.0
    ecr: float = 0.0
    gini: float = 0.0
    entropy: float = 0.0
    p_states: List[StateProb] = Field(default_factory=list, alias="pStates")
    known_fraction: float = Field(default=0.0, alias="knownFraction")
    difficulty: float = 1.0
    risk: float = 0.5
    dependency_factor: float = Field(default=1.0, alias="dependencyFactor")
    score: float = 0.0


class EvaluationRequest(BaseModel):
    """
    One evaluation call: current observations, mode, algorithm, options.

    `mode` is optional; when absent strict/lenient is derived from the
    conflict penalty. `previous_scores` (taxonId -> post from the previous
    evaluation) enables per-taxon deltas.
    """

    model_config = ConfigDict(populate_by_name=True)

    selection: Selection = Field(default_factory=Selection)
    mode: Optional[Mode] = None
    algo: Algorithm = Algorithm.BAYES
    opts: AlgoOptions = Field(default_factory=AlgoOptions)
    previous_scores: Dict[str, float] = Field(default_factory=dict, alias="previousScores")

    def is_strict(self, options: AlgoOptions) -> bool:
        """Explicit mode wins; otherwise strict follows the (clamped) options."""
        if self.mode is not None:
            return self.mode == Mode.STRICT
        return options.strict


class EvaluationResult(BaseModel):
    """Ranked scores plus ranked suggestions."""

    scores: List[TaxonScore] = Field(default_factory=list)
    suggestions: List[TraitSuggestion] = Field(default_factory=list)


# ============ JUSTIFICATION ============


class JustificationStatus(str, Enum):
    MATCH = "match"
    CONFLICT = "conflict"
    NEUTRAL = "neutral"
    UNOBSERVED = "unobserved"


class JustificationItem(BaseModel):
    """How one trait's observation compares with one taxon's record."""

    model_config = ConfigDict(populate_by_name=True)

    trait_id: str = Field(alias="traitId")
    trait_name: str = Field(alias="traitName")
    trait_group: str = Field(default="", alias="traitGroup")
    user_choice: str = Field(default="", alias="userChoice")
    taxon_state: str = Field(default="NA", alias="taxonState")
    status: JustificationStatus


class Justification(BaseModel):
    """Why a taxon ranks where it does: matches, conflicts, unobserved traits."""

    model_config = ConfigDict(populate_by_name=True)

    taxon_id: str = Field(alias="taxonId")
    matches: List[JustificationItem] = Field(default_factory=list)
    conflicts: List[JustificationItem] = Field(default_factory=list)
    neutral: List[JustificationItem] = Field(default_factory=list)
    unobserved: List[JustificationItem] = Field(default_factory=list)

    @computed_field(alias="matchCount")
    @property
    def match_count(self) -> int:
        return len(self.matches)

    @computed_field(alias="conflictCount")
    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)
