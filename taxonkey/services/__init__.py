# noqa
from taxonkey.services.evaluation_service import EvaluationService
from taxonkey.services.justification_service import JustificationService
from taxonkey.services.recommendation_service import RecommendationService

__all__ = ["EvaluationService", "JustificationService", "RecommendationService"]
