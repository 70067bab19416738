"""Options validator: clamps AlgoOptions into safe ranges.

Pure and total. Out-of-range values are silently corrected, never
rejected, so the interactive UI stays glitch-free while sliders are
dragged. Non-finite numbers fall back to the field default and
unrecognised enum strings fall back to the default choice.
"""

import math
from typing import Dict, Tuple

from taxonkey.domain.models.options import (
    AlgoOptions,
    CategoricalAlgo,
    RecommendationStrategy,
)

# Upper bound for the open-ended pseudo-count parameters (lambda, a0, b0)
MAX_PSEUDO_COUNT = 1e6

# field name -> (lo, hi)
OPTION_RANGES: Dict[str, Tuple[float, float]] = {
    "default_alpha_fp": (0.0, 0.2),
    "default_beta_fn": (0.0, 0.2),
    "gamma_na_penalty": (0.8, 1.0),
    "kappa": (0.0, 5.0),
    "conflict_penalty": (0.0, 1.0),
    "tolerance_factor": (0.0, 0.5),
    "jaccard_threshold": (0.0, 1.0),
    "lambda_": (0.0, MAX_PSEUDO_COUNT),
    "a0": (0.0, MAX_PSEUDO_COUNT),
    "b0": (0.0, MAX_PSEUDO_COUNT),
}

_DEFAULTS = AlgoOptions()


def clamp(value: float, lo: float, hi: float, default: float) -> float:
    """Clamp value into [lo, hi]; NaN and infinities become default."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return max(lo, min(hi, value))


def _clamp_overrides(overrides: Dict[str, float], lo: float, hi: float) -> Dict[str, float]:
    # Overrides without a usable value are dropped so the default applies
    out: Dict[str, float] = {}
    for key, value in overrides.items():
        clamped = clamp(value, lo, hi, math.nan)
        if not math.isnan(clamped):
            out[key] = clamped
    return out


def clamp_options(options: AlgoOptions) -> AlgoOptions:
    """Return a copy of options with every bounded field inside its range.

    Args:
        options: Caller-supplied options (may hold any values)

    Returns:
        New AlgoOptions; the input is not modified
    """
    update = {
        name: clamp(getattr(options, name), lo, hi, getattr(_DEFAULTS, name))
        for name, (lo, hi) in OPTION_RANGES.items()
    }

    algo = str(options.categorical_algo).strip().lower()
    if algo not in {a.value for a in CategoricalAlgo}:
        algo = _DEFAULTS.categorical_algo
    update["categorical_algo"] = algo

    strategy = str(options.recommendation_strategy).strip().lower()
    if strategy not in {s.value for s in RecommendationStrategy}:
        strategy = _DEFAULTS.recommendation_strategy
    update["recommendation_strategy"] = strategy

    update["alpha_fp"] = _clamp_overrides(options.alpha_fp, *OPTION_RANGES["default_alpha_fp"])
    update["beta_fn"] = _clamp_overrides(options.beta_fn, *OPTION_RANGES["default_beta_fn"])
    update["confidence"] = _clamp_overrides(options.confidence, 0.0, 1.0)
    update["priors"] = _clamp_overrides(options.priors, 0.0, math.inf)

    return options.model_copy(update=update, deep=True)
