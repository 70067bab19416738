"""
API request/response schemas.

Pydantic models for API validation and serialization. Wire keys are
camelCase; snake_case names are accepted too.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from taxonkey.core.exceptions import ValidationError
from taxonkey.domain.models.evaluation import (
    Algorithm,
    EvaluationRequest,
    Mode,
    TaxonScore,
    TraitSuggestion,
)
from taxonkey.domain.models.options import AlgoOptions
from taxonkey.domain.models.selection import Selection


def merge_options(defaults: AlgoOptions, overrides: Optional[Dict[str, Any]]) -> AlgoOptions:
    """Overlay caller-supplied option keys on the configured defaults.

    Raises:
        ValidationError: An option has the wrong type (e.g. text for kappa)
    """
    aliases = {name: f.alias or name for name, f in AlgoOptions.model_fields.items()}
    base = defaults.model_dump(by_alias=True)
    changes = {aliases.get(key, key): value for key, value in (overrides or {}).items()}
    try:
        return AlgoOptions.model_validate({**base, **changes})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid options: {e.errors()[0]['msg']}") from e


# ============ EVALUATION SCHEMAS ============


class EvaluateRequest(Selection):
    """Request to score taxa and recommend the next traits.

    Selection maps sit at the top level next to mode/algo/opts.
    `opts` holds only the keys the caller wants to change.
    """

    mode: Optional[Mode] = Field(
        default=None, description="strict or lenient; derived from conflictPenalty when absent"
    )
    algo: Algorithm = Field(default=Algorithm.BAYES, description="bayes or heuristic")
    opts: Dict[str, Any] = Field(default_factory=dict, description="AlgoOptions overrides")
    previous_scores: Dict[str, float] = Field(default_factory=dict, alias="previousScores")

    def to_domain(self, defaults: AlgoOptions) -> EvaluationRequest:
        return EvaluationRequest(
            selection=Selection(
                selected=self.selected,
                selected_multi=self.selected_multi,
                selected_na=self.selected_na,
            ),
            mode=self.mode,
            algo=self.algo,
            opts=merge_options(defaults, self.opts),
            previous_scores=self.previous_scores,
        )


class EvaluateResponse(BaseModel):
    """Ranked scores and suggestions for one evaluation."""

    model_config = ConfigDict(populate_by_name=True)

    scores: List[TaxonScore]
    suggestions: List[TraitSuggestion]
    latency_ms: float = Field(alias="latencyMs")


# ============ JUSTIFICATION SCHEMAS ============


class JustificationRequest(Selection):
    """Current selection plus the matching options to explain a taxon with."""

    opts: Dict[str, Any] = Field(default_factory=dict, description="AlgoOptions overrides")


# ============ MATRIX SCHEMAS ============


class MatrixSummary(BaseModel):
    """Overview of the loaded trait matrix."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    trait_count: int = Field(alias="traitCount")
    taxon_count: int = Field(alias="taxonCount")
    groups: List[str] = Field(default_factory=list)
    kinds: Dict[str, int] = Field(default_factory=dict, description="Trait count per kind")
