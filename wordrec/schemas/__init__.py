from wordrec.schemas.recommendation import (
    AlgorithmWeights,
    CachedRecommendations,
    FeedbackEvent,
    FeedbackRequest,
    FeedbackResponse,
    FeedbackType,
    LinguisticRecommendationRequest,
    PersonalRecommendationRequest,
    PreferencesUpdateRequest,
    RecommendationCategory,
    RecommendationExplanation,
    RecommendationItem,
    RecommendationResult,
    RecommendationsResponse,
    RecommendationStats,
    RecommendationType,
    TrendingRecommendationRequest,
    TrendPeriod,
)

__all__ = [
    "AlgorithmWeights",
    "CachedRecommendations",
    "FeedbackEvent",
    "FeedbackRequest",
    "FeedbackResponse",
    "FeedbackType",
    "LinguisticRecommendationRequest",
    "PersonalRecommendationRequest",
    "PreferencesUpdateRequest",
    "RecommendationCategory",
    "RecommendationExplanation",
    "RecommendationItem",
    "RecommendationResult",
    "RecommendationsResponse",
    "RecommendationStats",
    "RecommendationType",
    "TrendingRecommendationRequest",
    "TrendPeriod",
]
