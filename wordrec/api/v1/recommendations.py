import logging
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status

from wordrec.api.dependencies import get_current_user_id, get_recommendation_service
from wordrec.core.exception import WordRecError
from wordrec.schemas.recommendation import (
    FeedbackRequest,
    FeedbackResponse,
    LinguisticRecommendationRequest,
    PersonalRecommendationRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    RecommendationExplanation,
    RecommendationsResponse,
    RecommendationStats,
    RecommendationType,
    TrendingRecommendationRequest,
    TrendPeriod,
)
from wordrec.services.recommendation.service import RecommendationService

router = APIRouter(prefix="/recommendations")
logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _handle(operation: str, call: Awaitable[T]) -> T:
    """Let domain errors through to the app handler, turn the rest into a 500"""
    try:
        return await call
    except (HTTPException, WordRecError):
        raise
    except Exception as e:
        logger.error(f"[RECOMMENDATIONS] {operation} failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{operation} failed",
        ) from e


@router.get("/personal", response_model=RecommendationsResponse)
async def get_personal_recommendations(
    limit: int = 5,
    type: RecommendationType = RecommendationType.MIXED,
    languages: list[str] | None = Query(None),
    categories: list[str] | None = Query(None),
    refresh: bool = False,
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationsResponse:
    """Personalized recommendations for the authenticated user"""
    request = PersonalRecommendationRequest(
        limit=limit, type=type, languages=languages, categories=categories, refresh=refresh
    )
    return await _handle(
        "Personal recommendation", service.get_personal_recommendations(user_id, request)
    )


@router.get("/trending", response_model=RecommendationsResponse)
async def get_trending_recommendations(
    region: str | None = None,
    limit: int = 5,
    period: TrendPeriod = TrendPeriod.WEEK,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationsResponse:
    """Words with the most community activity"""
    request = TrendingRecommendationRequest(region=region, limit=limit, period=period)
    return await _handle(
        "Trending recommendation", service.get_trending_recommendations(request)
    )


@router.get("/linguistic/{language}", response_model=RecommendationsResponse)
async def get_linguistic_recommendations(
    language: str,
    level: int = 3,
    limit: int = 5,
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationsResponse:
    """Words of one language suited to a proficiency level"""
    request = LinguisticRecommendationRequest(language=language, level=level, limit=limit)
    return await _handle(
        "Linguistic recommendation", service.get_linguistic_recommendations(request)
    )


@router.post("/feedback", response_model=FeedbackResponse)
async def record_feedback(
    request: FeedbackRequest,
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
) -> FeedbackResponse:
    return await _handle("Feedback recording", service.record_feedback(user_id, request))


@router.get("/explain/{word_id}", response_model=RecommendationExplanation)
async def explain_recommendation(
    word_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationExplanation:
    """Per-signal breakdown of why a word would be recommended"""
    return await _handle(
        "Recommendation explanation", service.explain_recommendation(user_id, word_id)
    )


@router.get("/stats", response_model=RecommendationStats)
async def get_recommendation_stats(
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationStats:
    return await _handle("Recommendation stats", service.get_recommendation_stats(user_id))


@router.post("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    request: PreferencesUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
) -> PreferencesResponse:
    return await _handle("Preferences update", service.update_preferences(user_id, request))
