"""
API routes for identification.

POST /evaluate - Rank taxa and recommend the next traits
POST /taxa/{taxon_id}/justification - Explain one taxon against the selection
"""

import time

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
import structlog

from taxonkey.core.logging import evaluation_context
from taxonkey.api.dependencies import (
    EngineConfigDep,
    EvaluationServiceDep,
    JustificationServiceDep,
    MatrixDep,
)
from taxonkey.api.schemas import (
    EvaluateRequest,
    EvaluateResponse,
    JustificationRequest,
    merge_options,
)
from taxonkey.domain.models.evaluation import Justification

log = structlog.get_logger(__name__)
router = APIRouter(tags=["identification"])


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate(
    body: EvaluateRequest,
    matrix: MatrixDep,
    service: EvaluationServiceDep,
    config: EngineConfigDep,
) -> EvaluateResponse:
    """Score every taxon against the selection and rank unobserved traits.

    Options missing from `opts` take the configured defaults; out-of-range
    values are clamped rather than rejected.
    """
    start = time.perf_counter()
    with evaluation_context(matrix=matrix.name, algo=body.algo.value):
        request = body.to_domain(config.defaults)
        result = await run_in_threadpool(service.evaluate, matrix, request)

    latency_ms = round((time.perf_counter() - start) * 1000, 3)
    log.debug("evaluate_request_served", latency_ms=latency_ms, observed=len(body.selected))

    return EvaluateResponse(
        scores=result.scores,
        suggestions=result.suggestions,
        latency_ms=latency_ms,
    )


@router.post("/taxa/{taxon_id}/justification", response_model=Justification)
async def justify_taxon(
    taxon_id: str,
    body: JustificationRequest,
    matrix: MatrixDep,
    service: JustificationServiceDep,
    config: EngineConfigDep,
) -> Justification:
    """Break down matches and conflicts between one taxon and the selection.

    Raises:
        TaxonNotFoundError: Unknown taxon id (404)
    """
    with evaluation_context(matrix=matrix.name, taxon_id=taxon_id):
        justification = service.justify(
            matrix,
            taxon_id,
            body,
            merge_options(config.defaults, body.opts),
        )
        log.info(
            "justification_served",
            matches=justification.match_count,
            conflicts=justification.conflict_count,
        )
    return justification
