"""Per-trait matching of observations against taxon records."""

from taxonkey.services.matching.binary import match_binary
from taxonkey.services.matching.categorical import jaccard_similarity, match_categorical
from taxonkey.services.matching.continuous import match_continuous, tolerance_band
from taxonkey.services.matching.matcher import describe_taxon_state, match_observation
from taxonkey.services.matching.observations import Observation, resolve_observations

__all__ = [
    "Observation",
    "resolve_observations",
    "match_observation",
    "describe_taxon_state",
    "match_binary",
    "match_continuous",
    "match_categorical",
    "jaccard_similarity",
    "tolerance_band",
]
