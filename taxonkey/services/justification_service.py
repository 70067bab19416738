"""Justification service: explains a taxon's rank trait by trait.

Every trait is compared with the current selection using the same matcher
as the scorers, and sorted into matches, conflicts, neutral (observed but
the taxon has no data) and unobserved. Derived children are reported once
per group, under the group's name.
"""

from typing import Dict, List, Optional

import structlog

from taxonkey.core.exceptions import TaxonNotFoundError
from taxonkey.domain.models.evaluation import (
    Justification,
    JustificationItem,
    JustificationStatus,
)
from taxonkey.domain.models.matrix import Matrix, Taxon, Ternary, Trait, TraitKind
from taxonkey.domain.models.options import AlgoOptions
from taxonkey.domain.models.selection import Selection
from taxonkey.services.matching.matcher import describe_taxon_state, match_observation
from taxonkey.services.matching.observations import Observation, resolve_observations
from taxonkey.services.options_validator import clamp_options

log = structlog.get_logger(__name__)


class JustificationService:
    """Builds per-taxon justification reports."""

    def justify(
        self,
        matrix: Matrix,
        taxon_id: str,
        selection: Selection,
        options: Optional[AlgoOptions] = None,
    ) -> Justification:
        """
        Compare every trait of one taxon with the current selection.

        Args:
            matrix: Reference matrix
            taxon_id: Taxon to explain
            selection: Current user selection
            options: Matching options (tolerance, categorical rule)

        Returns:
            Justification grouped by status

        Raises:
            TaxonNotFoundError: If the taxon is not in the matrix
        """
        taxon = matrix.taxon_by_id(taxon_id)
        if taxon is None:
            raise TaxonNotFoundError(f"Taxon not found: {taxon_id}")

        opts = clamp_options(options or AlgoOptions())
        observations = resolve_observations(matrix, selection)
        justification = Justification(taxon_id=taxon.id)

        groups = matrix.derived_groups()
        headers = matrix.group_headers()
        header_ids = {h.id for h in headers.values()}
        seen_groups = set()

        for trait in matrix.traits:
            if trait.kind == TraitKind.DERIVED and trait.parent_id:
                group_id = trait.parent_id.strip()
                if group_id in seen_groups:
                    continue
                seen_groups.add(group_id)
                header = headers.get(group_id)
                item = self._group_item(
                    header.id if header else group_id,
                    groups[group_id],
                    header,
                    observations,
                    taxon,
                )
            elif trait.id in header_ids:
                continue
            else:
                item = self._trait_item(trait, observations.get(trait.id), taxon, opts)
            self._file(justification, item)

        log.debug(
            "justification_built",
            taxon_id=taxon.id,
            matches=justification.match_count,
            conflicts=justification.conflict_count,
        )
        return justification

    def _trait_item(
        self,
        trait: Trait,
        observation: Optional[Observation],
        taxon: Taxon,
        options: AlgoOptions,
    ) -> JustificationItem:
        taxon_state = describe_taxon_state(trait, taxon)
        if observation is None:
            status = JustificationStatus.UNOBSERVED
            user_choice = ""
        else:
            user_choice = observation.describe()
            result = match_observation(trait, observation, taxon, options)
            if result.is_agree:
                status = JustificationStatus.MATCH
            elif result.is_conflict:
                status = JustificationStatus.CONFLICT
            else:
                status = JustificationStatus.NEUTRAL

        return JustificationItem(
            trait_id=trait.id,
            trait_name=trait.name,
            trait_group=trait.group,
            user_choice=user_choice,
            taxon_state=taxon_state,
            status=status,
        )

    def _group_item(
        self,
        group_id: str,
        children: List[Trait],
        header: Optional[Trait],
        observations: Dict[str, Observation],
        taxon: Taxon,
    ) -> JustificationItem:
        """One item for a derived group: the user's pick against the taxon's states."""
        recorded = [c.state_label for c in children if taxon.binary_state(c.id) == Ternary.YES]
        chosen = [
            c.state_label
            for c in children
            if c.id in observations
            and not observations[c.id].is_na
            and not observations[c.id].implied
            and observations[c.id].state == Ternary.YES
        ]
        excluded = [
            c.id
            for c in children
            if c.id in observations
            and not observations[c.id].is_na
            and observations[c.id].state == Ternary.NO
        ]
        any_na = any(c.id in observations and observations[c.id].is_na for c in children)

        if chosen:
            if not recorded:
                status = JustificationStatus.NEUTRAL
            elif set(chosen) & set(recorded):
                status = JustificationStatus.MATCH
            else:
                status = JustificationStatus.CONFLICT
            user_choice = "; ".join(chosen)
        elif excluded:
            # Only explicit No answers: conflict if they rule out every recorded state
            excluded_labels = {c.state_label for c in children if c.id in excluded}
            if not recorded:
                status = JustificationStatus.NEUTRAL
            elif set(recorded) <= excluded_labels:
                status = JustificationStatus.CONFLICT
            else:
                status = JustificationStatus.MATCH
            user_choice = "not " + ", ".join(sorted(excluded_labels))
        elif any_na:
            status = JustificationStatus.NEUTRAL
            user_choice = "NA"
        else:
            status = JustificationStatus.UNOBSERVED
            user_choice = ""

        source = header or children[0]
        return JustificationItem(
            trait_id=group_id,
            trait_name=header.name if header else group_id,
            trait_group=source.group,
            user_choice=user_choice,
            taxon_state="; ".join(recorded) if recorded else "NA",
            status=status,
        )

    @staticmethod
    def _file(justification: Justification, item: JustificationItem) -> None:
        buckets = {
            JustificationStatus.MATCH: justification.matches,
            JustificationStatus.CONFLICT: justification.conflicts,
            JustificationStatus.NEUTRAL: justification.neutral,
            JustificationStatus.UNOBSERVED: justification.unobserved,
        }
        buckets[item.status].append(item)
