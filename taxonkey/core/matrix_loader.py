"""Matrix loader for trait matrix documents.

Loads a serialised Matrix (traits + taxa) from a YAML or JSON file. The
document layout mirrors the Matrix model with camelCase keys:

    name: Cherry blossoms
    traits:
      - {id: hairy_pedicel, name: Hairy pedicel, group: Flower, type: binary}
    taxa:
      - id: cerasus_speciosa
        name: Cerasus speciosa
        traits: {hairy_pedicel: -1}

Matrices are cached per resolved path after first load.
"""

import json
from pathlib import Path
from typing import Dict, Optional, Union

import structlog
import yaml
from pydantic import ValidationError as PydanticValidationError

from taxonkey.core.exceptions import MatrixLoadError
from taxonkey.domain.models.matrix import Matrix

log = structlog.get_logger(__name__)

# Module-level cache (matrix doesn't change at runtime)
_cache: Dict[str, Matrix] = {}

MATRICES_DIR = Path(__file__).parent.parent.parent / "config" / "matrices"


def load_matrix(path: Union[str, Path], use_cache: bool = True) -> Matrix:
    """Load a trait matrix from a YAML or JSON document.

    Args:
        path: Matrix file (.yaml, .yml or .json)
        use_cache: Return the cached matrix if this path was loaded before

    Returns:
        Validated Matrix

    Raises:
        MatrixLoadError: File missing, unparsable or not a valid matrix
    """
    resolved = Path(path).expanduser().resolve()
    key = str(resolved)
    if use_cache and key in _cache:
        return _cache[key]

    if not resolved.exists():
        raise MatrixLoadError(f"Matrix not found: {resolved}")

    try:
        with open(resolved, encoding="utf-8") as f:
            if resolved.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise MatrixLoadError(f"Cannot read matrix {resolved}: {e}") from e

    if not isinstance(data, dict):
        raise MatrixLoadError(f"Matrix document must be a mapping: {resolved}")

    try:
        matrix = Matrix.model_validate(data)
    except PydanticValidationError as e:
        raise MatrixLoadError(f"Invalid matrix {resolved}: {e}") from e

    if not matrix.name:
        matrix.name = resolved.stem

    _cache[key] = matrix
    log.info(
        "matrix_loaded",
        path=key,
        matrix=matrix.name,
        trait_count=len(matrix.traits),
        taxon_count=len(matrix.taxa),
    )
    return matrix


def load_named_matrix(name: str, matrices_dir: Optional[Path] = None) -> Matrix:
    """Load config/matrices/{name}.yaml (or .json).

    Args:
        name: Matrix identifier (e.g. 'cherry_blossoms')
        matrices_dir: Override config/matrices/ path (for testing)

    Raises:
        MatrixLoadError: No document with that name
    """
    directory = matrices_dir or MATRICES_DIR
    for suffix in (".yaml", ".yml", ".json"):
        candidate = directory / f"{name}{suffix}"
        if candidate.exists():
            return load_matrix(candidate)
    raise MatrixLoadError(f"Matrix not found: {name} in {directory}")


def clear_cache() -> None:
    """Forget all cached matrices."""
    _cache.clear()
