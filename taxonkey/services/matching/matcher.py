"""Trait matcher: compares one observation with one taxon's record.

Dispatches on the trait kind. Pure; never raises for malformed data,
which always yields an Unknown outcome instead.
"""

from typing import Optional

from taxonkey.domain.models.evaluation import UNKNOWN_MATCH, MatchResult
from taxonkey.domain.models.matrix import Taxon, Ternary, Trait, TraitKind
from taxonkey.domain.models.options import AlgoOptions
from taxonkey.services.matching.binary import match_binary
from taxonkey.services.matching.categorical import match_categorical
from taxonkey.services.matching.continuous import match_continuous
from taxonkey.services.matching.observations import Observation


def match_observation(
    trait: Trait,
    observation: Optional[Observation],
    taxon: Taxon,
    options: AlgoOptions,
) -> MatchResult:
    """Classify a taxon's recorded state against an observation.

    Args:
        trait: Trait definition
        observation: Resolved observation (None if the trait is unset)
        taxon: Taxon whose record is compared
        options: Clamped algorithm options

    Returns:
        MatchResult with outcome and graded strength
    """
    if observation is None or observation.is_na:
        return UNKNOWN_MATCH

    if trait.kind in (TraitKind.BINARY, TraitKind.DERIVED):
        return match_binary(observation.state, taxon.binary_state(trait.id))

    if trait.kind == TraitKind.CONTINUOUS:
        return match_continuous(
            observation.value,
            taxon.range_for(trait.id),
            options.tolerance_factor,
            trait,
        )

    if trait.kind.is_categorical:
        return match_categorical(
            observation.states,
            taxon.states_for(trait.id),
            options.categorical_algo,
            options.jaccard_threshold,
        )

    return UNKNOWN_MATCH


def describe_taxon_state(trait: Trait, taxon: Taxon) -> str:
    """Human-readable form of the taxon's recorded state for a trait."""
    if trait.kind == TraitKind.CONTINUOUS:
        recorded = taxon.range_for(trait.id)
        if recorded is None:
            return "NA"
        if recorded.span == 0:
            return f"{recorded.min:g}"
        return f"{recorded.min:g}-{recorded.max:g}"
    if trait.kind.is_categorical:
        states = taxon.states_for(trait.id)
        return "; ".join(states) if states else "NA"
    return {Ternary.YES: "Yes", Ternary.NO: "No"}.get(taxon.binary_state(trait.id), "NA")
