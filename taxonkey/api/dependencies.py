"""Dependency injection for API routes."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from taxonkey.core.config import EngineConfig, engine_config
from taxonkey.core.exceptions import MatrixNotLoadedError
from taxonkey.domain.models.matrix import Matrix
from taxonkey.services.evaluation_service import EvaluationService
from taxonkey.services.justification_service import JustificationService


def get_matrix(request: Request) -> Matrix:
    """FastAPI dependency injection for the reference matrix.

    The matrix is attached to app.state at startup (or by a test).

    Raises:
        MatrixNotLoadedError: No matrix has been provided
    """
    matrix = getattr(request.app.state, "matrix", None)
    if matrix is None:
        raise MatrixNotLoadedError("No trait matrix loaded; set MATRIX_PATH")
    return matrix


def get_engine_config() -> EngineConfig:
    return engine_config


@lru_cache(maxsize=1)
def get_evaluation_service() -> EvaluationService:
    """Cached evaluation service.

    The service is stateless, so one instance is shared by all requests.
    """
    return EvaluationService(engine_config)


@lru_cache(maxsize=1)
def get_justification_service() -> JustificationService:
    return JustificationService()


# Type aliases for dependency injection
MatrixDep = Annotated[Matrix, Depends(get_matrix)]
EngineConfigDep = Annotated[EngineConfig, Depends(get_engine_config)]
EvaluationServiceDep = Annotated[EvaluationService, Depends(get_evaluation_service)]
JustificationServiceDep = Annotated[JustificationService, Depends(get_justification_service)]
