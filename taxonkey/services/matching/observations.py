"""Resolve raw user selections into typed per-trait observations.

This is where malformed input is absorbed: a selection that names an
unknown trait, sits in the wrong map for its trait kind, or carries an
impossible value is dropped (logged at debug level) so the rest of the
evaluation proceeds. Derived traits are expanded here: choosing child X
of a mutually exclusive group implies No for every sibling the user has
not set explicitly.
"""

import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

import structlog

from taxonkey.domain.models.matrix import Matrix, Ternary, Trait, TraitKind
from taxonkey.domain.models.selection import Selection

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Observation:
    """One trait's observed value, already checked against the trait kind."""

    trait_id: str
    kind: TraitKind
    is_na: bool = False
    state: Ternary = Ternary.NA
    value: Optional[float] = None
    states: FrozenSet[str] = frozenset()
    implied: bool = False

    def describe(self) -> str:
        """Human-readable form of the observed value."""
        if self.is_na:
            return "NA"
        if self.kind == TraitKind.CONTINUOUS:
            return f"{self.value:g}"
        if self.kind.is_categorical:
            return "; ".join(sorted(self.states))
        return {Ternary.YES: "Yes", Ternary.NO: "No"}.get(self.state, "NA")


def _binary_state(value) -> Optional[Ternary]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number not in (-1.0, 0.0, 1.0):
        return None
    return Ternary(int(number))


def _categorical_states(trait: Trait, raw: List[str]) -> Optional[FrozenSet[str]]:
    states = frozenset(str(s).strip() for s in raw if str(s).strip())
    if trait.allowed_states:
        allowed = set(trait.allowed_states)
        dropped = states - allowed
        if dropped:
            log.debug("categorical_states_dropped", trait_id=trait.id, states=sorted(dropped))
        states = states & allowed
    if not states:
        return None
    if trait.kind == TraitKind.CATEGORICAL_SINGLE and len(states) > 1:
        log.debug("selection_ignored", trait_id=trait.id, reason="multiple_states_for_single")
        return None
    return states


def resolve_observations(matrix: Matrix, selection: Selection) -> Dict[str, Observation]:
    """Turn a caller selection into observations keyed by trait id.

    Args:
        matrix: Reference matrix (used for trait kinds and derived groups)
        selection: Raw selection maps from the caller

    Returns:
        Observations in matrix trait order. Unset traits are absent;
        traits marked NA are present with is_na=True.
    """
    trait_map = matrix.trait_map()

    for trait_id in list(selection.selected) + list(selection.selected_multi):
        if trait_id not in trait_map:
            log.debug("selection_ignored", trait_id=trait_id, reason="unknown_trait")

    observations: Dict[str, Observation] = {}
    for trait in matrix.traits:
        if selection.is_na(trait.id):
            observations[trait.id] = Observation(trait_id=trait.id, kind=trait.kind, is_na=True)
            continue

        if trait.kind in (TraitKind.BINARY, TraitKind.DERIVED):
            if trait.id in selection.selected_multi:
                log.debug("selection_ignored", trait_id=trait.id, reason="wrong_map")
            if trait.id not in selection.selected:
                continue
            state = _binary_state(selection.selected[trait.id])
            if state is None:
                log.debug("selection_ignored", trait_id=trait.id, reason="invalid_binary_value")
                continue
            if state != Ternary.NA:
                observations[trait.id] = Observation(trait_id=trait.id, kind=trait.kind, state=state)

        elif trait.kind == TraitKind.CONTINUOUS:
            if trait.id not in selection.selected:
                continue
            try:
                value = float(selection.selected[trait.id])
            except (TypeError, ValueError):
                value = math.nan
            if not math.isfinite(value):
                log.debug("selection_ignored", trait_id=trait.id, reason="non_finite_value")
                continue
            observations[trait.id] = Observation(trait_id=trait.id, kind=trait.kind, value=value)

        else:
            if trait.id in selection.selected and selection.selected[trait.id] != 0:
                log.debug("selection_ignored", trait_id=trait.id, reason="wrong_map")
            states = _categorical_states(trait, selection.selected_multi.get(trait.id) or [])
            if states is not None:
                observations[trait.id] = Observation(trait_id=trait.id, kind=trait.kind, states=states)

    _expand_derived_groups(matrix, observations)

    return {t.id: observations[t.id] for t in matrix.traits if t.id in observations}


def _expand_derived_groups(matrix: Matrix, observations: Dict[str, Observation]) -> None:
    """Selecting one child of a group implies No for its unset siblings."""
    for children in matrix.derived_groups().values():
        chosen = [
            c.id
            for c in children
            if c.id in observations
            and not observations[c.id].is_na
            and observations[c.id].state == Ternary.YES
        ]
        if not chosen:
            continue
        for child in children:
            if child.id not in observations:
                observations[child.id] = Observation(
                    trait_id=child.id,
                    kind=TraitKind.DERIVED,
                    state=Ternary.NO,
                    implied=True,
                )
