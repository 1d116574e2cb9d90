from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from wordrec.services.recommendation.constants import (
    DEFAULT_BEHAVIORAL_WEIGHT,
    DEFAULT_COMMUNITY_WEIGHT,
    DEFAULT_LINGUISTIC_WEIGHT,
    DEFAULT_SEMANTIC_WEIGHT,
    MAX_LINGUISTIC_LIMIT,
    MAX_PERSONAL_LIMIT,
    MAX_PROFICIENCY,
    MAX_TRENDING_LIMIT,
    MIN_PROFICIENCY,
)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def clamp_score(value: float) -> float:
    """Clamp a recommendation score into [0, 1]"""
    return clamp(float(value), 0.0, 1.0)


def _clamp_int(value: Any, lower: int, upper: int) -> int:
    return int(clamp(int(value), lower, upper))


class RecommendationType(str, Enum):
    PERSONAL = "personal"
    TRENDING = "trending"
    LINGUISTIC = "linguistic"
    SEMANTIC = "semantic"
    MIXED = "mixed"


class RecommendationCategory(str, Enum):
    BEHAVIORAL = "behavioral"
    SEMANTIC = "semantic"
    COMMUNITY = "community"
    LINGUISTIC = "linguistic"
    MIXED = "mixed"


class FeedbackType(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"
    NOT_INTERESTED = "not_interested"
    VIEW = "view"
    FAVORITE = "favorite"


class TrendPeriod(str, Enum):
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"


class RecommendationResult(BaseModel):
    """Scored candidate produced by an extractor"""

    entry_id: str
    score: float
    reasons: list[str] = Field(default_factory=list)
    category: RecommendationCategory
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_to_unit(cls, v: Any) -> float:
        return clamp_score(v)


class AlgorithmWeights(BaseModel):
    """Blend weights of the four signals. Each is clamped to [0, 1], the sum is left as is."""

    behavioral: float = DEFAULT_BEHAVIORAL_WEIGHT
    semantic: float = DEFAULT_SEMANTIC_WEIGHT
    community: float = DEFAULT_COMMUNITY_WEIGHT
    linguistic: float = DEFAULT_LINGUISTIC_WEIGHT

    @field_validator("behavioral", "semantic", "community", "linguistic", mode="before")
    @classmethod
    def clamp_weight(cls, v: Any) -> float:
        return clamp(float(v), 0.0, 1.0)

    def for_category(self, category: RecommendationCategory) -> float:
        return float(getattr(self, category.value))


class FeedbackEvent(BaseModel):
    """Feedback event as stored in the profile history"""

    entry_id: str = Field(validation_alias=AliasChoices("entry_id", "word_id"))
    feedback_type: FeedbackType
    timestamp: datetime
    reason: str | None = None

    class Config:
        from_attributes = True


class CachedRecommendations(BaseModel):
    """Cached recommendation set for one (user, recommendation type) key"""

    user_id: str
    recommendation_type: RecommendationType
    recommendations: list[RecommendationResult]
    generated_at: datetime
    valid_until: datetime
    algorithm: str
    weights: AlgorithmWeights
    generation_time_ms: int = 0
    total_candidates: int = 0
    avg_score: float = 0.0
    requested_limit: int = 0

    def covers(self, limit: int) -> bool:
        """Whether this set can answer a request for ``limit`` items.

        A short set still covers a larger limit when it was generated at that
        limit or above, since fewer candidates existed than were asked for.
        """
        return len(self.recommendations) >= limit or self.requested_limit >= limit


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PersonalRecommendationRequest(BaseModel):
    """Personalized recommendation request. Out-of-range limits are clamped."""

    limit: int = 5
    type: RecommendationType = RecommendationType.MIXED
    languages: list[str] | None = None
    categories: list[str] | None = None
    refresh: bool = False

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, v: Any) -> int:
        return _clamp_int(v, 1, MAX_PERSONAL_LIMIT)

    @property
    def has_filters(self) -> bool:
        return bool(self.languages) or bool(self.categories)


class TrendingRecommendationRequest(BaseModel):
    region: str | None = None
    limit: int = 5
    period: TrendPeriod = TrendPeriod.WEEK

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, v: Any) -> int:
        return _clamp_int(v, 1, MAX_TRENDING_LIMIT)


class LinguisticRecommendationRequest(BaseModel):
    language: str = Field(..., min_length=1)
    level: int = 3
    limit: int = 5

    @field_validator("level", mode="before")
    @classmethod
    def clamp_level(cls, v: Any) -> int:
        return _clamp_int(v, MIN_PROFICIENCY, MAX_PROFICIENCY)

    @field_validator("limit", mode="before")
    @classmethod
    def clamp_limit(cls, v: Any) -> int:
        return _clamp_int(v, 1, MAX_LINGUISTIC_LIMIT)


class FeedbackRequest(BaseModel):
    entry_id: str = Field(..., min_length=1)
    feedback_type: FeedbackType
    reason: str | None = Field(None, max_length=500)


class WeightsUpdate(BaseModel):
    behavioral: float | None = None
    semantic: float | None = None
    community: float | None = None
    linguistic: float | None = None

    @field_validator("behavioral", "semantic", "community", "linguistic", mode="before")
    @classmethod
    def clamp_weight(cls, v: Any) -> float | None:
        if v is None:
            return v
        return clamp(float(v), 0.0, 1.0)


class PreferencesUpdateRequest(BaseModel):
    algorithm_weights: WeightsUpdate | None = None
    preferred_categories: list[str] | None = None
    language_proficiency: dict[str, int] | None = None

    @field_validator("language_proficiency", mode="before")
    @classmethod
    def clamp_levels(cls, v: Any) -> Any:
        if v is None:
            return v
        return {lang: _clamp_int(level, MIN_PROFICIENCY, MAX_PROFICIENCY) for lang, level in v.items()}


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class RecommendationItem(BaseModel):
    """Recommended word joined with its display data"""

    id: str
    word: str
    language: str
    language_name: str
    language_flag: str
    definition: str
    score: float
    reasons: list[str] = []
    category: RecommendationCategory
    pronunciation: str | None = None
    examples: list[str] = []
    audio_url: str | None = None
    metadata: dict[str, Any] = {}


class AlgorithmInfo(BaseModel):
    type: str
    weights: AlgorithmWeights


class RecommendationsResponse(BaseModel):
    recommendations: list[RecommendationItem]
    count: int
    type: str
    timestamp: datetime
    from_cache: bool
    generation_time_ms: int
    avg_score: float
    algorithm: AlgorithmInfo


class FeedbackResponse(BaseModel):
    success: bool
    message: str
    impact: str
    timestamp: datetime


class FactorBreakdown(BaseModel):
    score: float
    details: list[str] = []


class RelatedWord(BaseModel):
    id: str
    word: str
    language: str | None = None
    similarity: float
    reason: str


class RecommendationExplanation(BaseModel):
    word_id: str
    score: float
    factors: dict[str, FactorBreakdown]
    related_words: list[RelatedWord] = []
    alternatives: list[RecommendationItem] = []


class RecommendationStats(BaseModel):
    total_recommendations_seen: int
    total_clicked: int
    total_favorited: int
    click_through_rate: float
    favorite_rate: float
    top_categories: list[str] = []
    top_languages: list[str] = []
    learning_progress: dict[str, int] = {}
    timestamp: datetime


class PreferencesResponse(BaseModel):
    success: bool
    message: str
    algorithm_weights: AlgorithmWeights
    preferred_categories: list[str]
    language_proficiency: dict[str, int]
