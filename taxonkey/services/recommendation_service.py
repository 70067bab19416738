"""Next-trait recommendation by expected information gain.

Each unobserved trait is treated as a question whose answer partitions the
current posterior. A recommendation unit is a plain trait, a derived group
(mutually exclusive children sharing a parentId, answered by picking one
child), or a continuous trait discretised into equal-width bins.

For unit u with states s, taxon i covers the state set S_i (what its
record allows). The outcome model is:

    L(s | i) = 1 / |S_i|   for s in S_i      (taxa with data)
    L(s | i) = q_s                           (taxa without data)

where q_s is the candidate-weighted share of state s among taxa with data.
From this we report:

    ig      = H(post) - sum_s q_s * H(post | s)      (mutual information)
    max_ig  = max_s (H(post) - H(post | s))          (best single answer)
    ecr     = sum_s q_s * (1 - C(post | s) / C(post))
    entropy = H(q),  gini = 1 - sum_s q_s^2

C counts taxa whose posterior reaches the candidate threshold.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set

import numpy as np
import structlog

from taxonkey.core.config import RecommenderConfig
from taxonkey.domain.models.evaluation import StateProb, TraitSuggestion
from taxonkey.domain.models.matrix import Dependency, Matrix, Ternary, Trait, TraitKind
from taxonkey.domain.models.options import AlgoOptions, RecommendationStrategy
from taxonkey.services.matching.observations import Observation
from taxonkey.services.scoring.math_utils import (
    count_above,
    gini_impurity,
    normalize,
    shannon_entropy,
)

log = structlog.get_logger(__name__)

YES_LABEL = "Yes"
NO_LABEL = "No"


@dataclass
class RecommendationUnit:
    """One askable question and the states each taxon allows for it."""

    unit_id: str
    name: str
    group: str
    states: List[str]
    coverage: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    difficulty: float = 1.0
    risk: float = 0.5
    dependency: Optional[Dependency] = None
    resolved: bool = False
    observed_labels: Optional[Set[str]] = None


class RecommendationService:
    """
    Ranks unobserved traits by how well they would split the candidates.

    Stateless: every call works from the matrix, the resolved observations
    and the current posterior distribution.
    """

    def __init__(self, config: Optional[RecommenderConfig] = None):
        self.config = config or RecommenderConfig()
        log.debug(
            "recommendation_service_initialized",
            candidate_threshold=self.config.candidate_threshold,
            continuous_bins=self.config.continuous_bins,
        )

    def recommend(
        self,
        matrix: Matrix,
        observations: Dict[str, Observation],
        distribution: Dict[str, float],
        options: AlgoOptions,
    ) -> List[TraitSuggestion]:
        """Rank every unresolved unit.

        Args:
            matrix: Reference matrix
            observations: Resolved observations keyed by trait id
            distribution: taxonId -> posterior mass (normalised here)
            options: Clamped algorithm options

        Returns:
            Suggestions sorted by score descending, then name, then id
        """
        if not matrix.taxa:
            return []

        taxon_ids = [t.id for t in matrix.taxa]
        post = normalize([distribution.get(tid, 0.0) for tid in taxon_ids])
        prior_entropy = shannon_entropy(post)
        prior_candidates = count_above(post, self.config.candidate_threshold)

        units = self.build_units(matrix, observations)

        suggestions: List[TraitSuggestion] = []
        for unit in units.values():
            if unit.resolved or not unit.states:
                continue
            suggestion = self._evaluate_unit(
                unit, taxon_ids, post, prior_entropy, prior_candidates
            )
            factor = 1.0
            if options.apply_dependencies and unit.dependency is not None:
                factor = self.dependency_factor(unit.dependency, units, taxon_ids, post)
            suggestion.dependency_factor = factor
            suggestion.score = self._score(suggestion, factor, options)
            suggestions.append(suggestion)

        suggestions.sort(key=lambda s: (-s.score, s.name, s.trait_id))
        return suggestions

    # ==========================================================================
    # Units
    # ==========================================================================

    def build_units(
        self,
        matrix: Matrix,
        observations: Dict[str, Observation],
    ) -> Dict[str, RecommendationUnit]:
        """Recommendation units keyed by unit id, in matrix order.

        Resolved units are included (flagged) so dependencies can consult
        them.
        """
        groups = matrix.derived_groups()
        headers = matrix.group_headers()
        header_ids = {h.id for h in headers.values()}
        units: Dict[str, RecommendationUnit] = {}

        for trait in matrix.traits:
            if trait.kind == TraitKind.DERIVED:
                group_id = (trait.parent_id or "").strip()
                header = headers.get(group_id)
                unit_id = header.id if header else group_id
                if group_id and unit_id not in units:
                    units[unit_id] = self._derived_unit(
                        unit_id, groups[group_id], header, matrix, observations
                    )
                continue
            if trait.id in header_ids:
                # Header trait of a derived group; the group unit stands in for it
                continue
            if trait.kind == TraitKind.BINARY:
                units[trait.id] = self._binary_unit(trait, matrix, observations)
            elif trait.kind == TraitKind.CONTINUOUS:
                units[trait.id] = self._continuous_unit(trait, matrix, observations)
            else:
                units[trait.id] = self._categorical_unit(trait, matrix, observations)

        return units

    def _binary_unit(
        self, trait: Trait, matrix: Matrix, observations: Dict[str, Observation]
    ) -> RecommendationUnit:
        labels = {Ternary.YES: YES_LABEL, Ternary.NO: NO_LABEL}
        coverage = {}
        for taxon in matrix.taxa:
            label = labels.get(taxon.binary_state(trait.id))
            coverage[taxon.id] = frozenset([label]) if label else frozenset()

        obs = observations.get(trait.id)
        observed = None
        if obs is not None:
            observed = set() if obs.is_na else {labels[obs.state]}

        return RecommendationUnit(
            unit_id=trait.id,
            name=trait.name,
            group=trait.group,
            states=[YES_LABEL, NO_LABEL],
            coverage=coverage,
            difficulty=trait.difficulty,
            risk=trait.risk,
            dependency=trait.dependency,
            resolved=obs is not None,
            observed_labels=observed,
        )

    def _derived_unit(
        self,
        group_id: str,
        children: List[Trait],
        header: Optional[Trait],
        matrix: Matrix,
        observations: Dict[str, Observation],
    ) -> RecommendationUnit:
        labels = [child.state_label for child in children]
        coverage = {
            taxon.id: frozenset(
                child.state_label
                for child in children
                if taxon.binary_state(child.id) == Ternary.YES
            )
            for taxon in matrix.taxa
        }

        observed: Optional[Set[str]] = None
        for child in children:
            obs = observations.get(child.id)
            if obs is None or obs.implied:
                continue
            if obs.is_na:
                observed = observed or set()
            elif obs.state == Ternary.YES:
                observed = (observed or set()) | {child.state_label}

        source = header or children[0]
        return RecommendationUnit(
            unit_id=group_id,
            name=header.name if header else group_id,
            group=source.group,
            states=list(dict.fromkeys(labels)),
            coverage=coverage,
            difficulty=source.difficulty,
            risk=source.risk,
            dependency=source.dependency,
            resolved=observed is not None,
            observed_labels=observed,
        )

    def _bin_edges(self, trait: Trait, matrix: Matrix) -> np.ndarray:
        lo, hi = trait.min_value, trait.max_value
        if hi <= lo:
            ranges = [r for r in (t.range_for(trait.id) for t in matrix.taxa) if r is not None]
            if ranges:
                lo = min(r.min for r in ranges)
                hi = max(r.max for r in ranges)
        if hi <= lo:
            return np.array([lo, lo])
        return np.linspace(lo, hi, self.config.continuous_bins + 1)

    @staticmethod
    def _bins_for(lo: float, hi: float, edges: np.ndarray) -> List[int]:
        """Indices of the bins [e_k, e_k+1) that [lo, hi] overlaps; the last bin is closed.

        A range that only touches a bin edge does not cover the next bin.
        """
        n = len(edges) - 1
        lo = min(max(lo, edges[0]), edges[-1])
        hi = min(max(hi, edges[0]), edges[-1])
        first = min(n - 1, int(np.searchsorted(edges, lo, side="right")) - 1)
        bins = {max(first, 0)}
        bins.update(k for k in range(n) if lo < edges[k + 1] and hi > edges[k])
        return sorted(bins)

    def _continuous_unit(
        self, trait: Trait, matrix: Matrix, observations: Dict[str, Observation]
    ) -> RecommendationUnit:
        edges = self._bin_edges(trait, matrix)
        labels = [f"[{edges[k]:g}, {edges[k + 1]:g}]" for k in range(len(edges) - 1)]

        coverage = {}
        for taxon in matrix.taxa:
            recorded = taxon.range_for(trait.id)
            if recorded is None:
                coverage[taxon.id] = frozenset()
            else:
                coverage[taxon.id] = frozenset(
                    labels[k] for k in self._bins_for(recorded.min, recorded.max, edges)
                )

        obs = observations.get(trait.id)
        observed = None
        if obs is not None:
            observed = set()
            if not obs.is_na and obs.value is not None:
                observed = {labels[k] for k in self._bins_for(obs.value, obs.value, edges)}

        return RecommendationUnit(
            unit_id=trait.id,
            name=trait.name,
            group=trait.group,
            states=labels,
            coverage=coverage,
            difficulty=trait.difficulty,
            risk=trait.risk,
            dependency=trait.dependency,
            resolved=obs is not None,
            observed_labels=observed,
        )

    def _categorical_unit(
        self, trait: Trait, matrix: Matrix, observations: Dict[str, Observation]
    ) -> RecommendationUnit:
        states = list(trait.allowed_states)
        if not states:
            states = sorted({s for taxon in matrix.taxa for s in taxon.states_for(trait.id)})
        allowed = set(states)
        coverage = {
            taxon.id: frozenset(s for s in taxon.states_for(trait.id) if s in allowed)
            for taxon in matrix.taxa
        }

        obs = observations.get(trait.id)
        observed = None
        if obs is not None:
            observed = set() if obs.is_na else set(obs.states)

        return RecommendationUnit(
            unit_id=trait.id,
            name=trait.name,
            group=trait.group,
            states=states,
            coverage=coverage,
            difficulty=trait.difficulty,
            risk=trait.risk,
            dependency=trait.dependency,
            resolved=obs is not None,
            observed_labels=observed,
        )

    # ==========================================================================
    # Statistics
    # ==========================================================================

    def _evaluate_unit(
        self,
        unit: RecommendationUnit,
        taxon_ids: List[str],
        post: np.ndarray,
        prior_entropy: float,
        prior_candidates: int,
    ) -> TraitSuggestion:
        k = len(unit.states)
        index = {s: j for j, s in enumerate(unit.states)}

        likelihood = np.zeros((len(taxon_ids), k))
        known = np.zeros(len(taxon_ids), dtype=bool)
        for i, tid in enumerate(taxon_ids):
            covered = [index[s] for s in unit.coverage.get(tid, ()) if s in index]
            if covered:
                known[i] = True
                likelihood[i, covered] = 1.0 / len(covered)

        known_mass = float(post[known].sum())
        if known_mass > 0:
            q = (post[known][:, None] * likelihood[known]).sum(axis=0) / known_mass
        else:
            q = np.full(k, 1.0 / k)
        likelihood[~known] = q

        joint = post[:, None] * likelihood
        expected_entropy = 0.0
        best_single = 0.0
        ecr = 0.0
        for j in range(k):
            if q[j] <= 0:
                continue
            branch = normalize(joint[:, j])
            branch_entropy = shannon_entropy(branch)
            expected_entropy += q[j] * branch_entropy
            best_single = max(best_single, prior_entropy - branch_entropy)
            if prior_candidates > 0:
                remaining = count_above(branch, self.config.candidate_threshold)
                ecr += q[j] * (1.0 - remaining / prior_candidates)

        return TraitSuggestion(
            trait_id=unit.unit_id,
            name=unit.name,
            group=unit.group,
            ig=max(0.0, prior_entropy - expected_entropy),
            max_ig=max(0.0, best_single),
            ecr=float(ecr),
            gini=gini_impurity(q),
            entropy=shannon_entropy(q),
            p_states=[StateProb(state=s, p=float(q[j])) for j, s in enumerate(unit.states)],
            known_fraction=known_mass / float(post.sum()) if post.sum() > 0 else 0.0,
            difficulty=unit.difficulty,
            risk=unit.risk,
        )

    def dependency_factor(
        self,
        dependency: Dependency,
        units: Dict[str, RecommendationUnit],
        taxon_ids: List[str],
        post: np.ndarray,
    ) -> float:
        """How likely the prerequisite state is to hold.

        1 or 0 once the parent has been observed with a state; otherwise
        (unobserved, or marked NA) the posterior share of taxa with parent
        data whose record allows the required state (1 when no taxon has
        parent data).
        """
        parent = units.get(dependency.parent_trait_id)
        if parent is None:
            return 1.0
        required = dependency.required_state.strip().lower()

        if parent.resolved and parent.observed_labels:
            labels = {s.lower() for s in parent.observed_labels}
            return 1.0 if required in labels else 0.0

        with_data = 0.0
        satisfied = 0.0
        for i, tid in enumerate(taxon_ids):
            covered = parent.coverage.get(tid)
            if not covered:
                continue
            with_data += post[i]
            if required in {s.lower() for s in covered}:
                satisfied += post[i]
        if with_data <= 0:
            return 1.0
        return float(satisfied / with_data)

    def _score(self, suggestion: TraitSuggestion, factor: float, options: AlgoOptions) -> float:
        if options.recommendation_strategy == RecommendationStrategy.MAX_IG.value:
            gain = suggestion.max_ig
        else:
            gain = suggestion.ig
        score = gain * factor
        if options.use_pragmatic_score:
            difficulty = max(suggestion.difficulty, self.config.min_difficulty)
            certainty = max(1.0 - suggestion.risk, self.config.min_certainty)
            score = score / (difficulty * certainty)
        return float(score)
