"""
API routes for the reference matrix.

GET /matrix - Summary of the loaded matrix
"""

from collections import Counter

from fastapi import APIRouter

from taxonkey.api.dependencies import MatrixDep
from taxonkey.api.schemas import MatrixSummary

router = APIRouter(prefix="/matrix", tags=["matrix"])


@router.get("", response_model=MatrixSummary)
async def get_matrix_summary(matrix: MatrixDep) -> MatrixSummary:
    """Name, sizes, trait groups and kinds of the loaded matrix."""
    groups = list(dict.fromkeys(t.group for t in matrix.traits if t.group))
    kinds = Counter(t.kind.value for t in matrix.traits)
    return MatrixSummary(
        name=matrix.name,
        trait_count=len(matrix.traits),
        taxon_count=len(matrix.taxa),
        groups=groups,
        kinds=dict(kinds),
    )
