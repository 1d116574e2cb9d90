from typing import Any

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from wordrec.models.base import Base, TimestampMixin
from wordrec.services.recommendation.constants import (
    DEFAULT_BEHAVIORAL_WEIGHT,
    DEFAULT_COMMUNITY_WEIGHT,
    DEFAULT_LINGUISTIC_WEIGHT,
    DEFAULT_PROFICIENCY,
    DEFAULT_SEMANTIC_WEIGHT,
)


def _default_interaction_patterns() -> dict[str, Any]:
    return {"peak_hours": [], "preferred_content_types": [], "average_session_duration": 0}


class UserRecommendationProfile(Base, TimestampMixin):
    """Per-user recommendation profile, lazily created on first access"""

    __tablename__ = "user_recommendation_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, unique=True, index=True)
    preferred_categories = Column(JSON, default=list, nullable=False)
    language_proficiency = Column(JSON, default=dict, nullable=False)  # language -> level 1..5
    interaction_patterns = Column(JSON, default=_default_interaction_patterns, nullable=False)
    semantic_interests = Column(JSON, default=list, nullable=False)
    last_recommendation_at = Column(DateTime, default=func.now(), nullable=False, index=True)

    total_recommendations_seen = Column(Integer, default=0, nullable=False)
    total_recommendations_clicked = Column(Integer, default=0, nullable=False)
    total_recommendations_favorited = Column(Integer, default=0, nullable=False)

    behavioral_weight = Column(Float, default=DEFAULT_BEHAVIORAL_WEIGHT, nullable=False)
    semantic_weight = Column(Float, default=DEFAULT_SEMANTIC_WEIGHT, nullable=False)
    community_weight = Column(Float, default=DEFAULT_COMMUNITY_WEIGHT, nullable=False)
    linguistic_weight = Column(Float, default=DEFAULT_LINGUISTIC_WEIGHT, nullable=False)

    feedback_history = relationship(
        "RecommendationFeedback",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="RecommendationFeedback.timestamp",
        lazy="selectin",
    )

    def __init__(self, **kwargs: Any) -> None:
        # Python-side defaults so that a profile is usable before its first flush
        kwargs.setdefault("preferred_categories", [])
        kwargs.setdefault("language_proficiency", {})
        kwargs.setdefault("interaction_patterns", _default_interaction_patterns())
        kwargs.setdefault("semantic_interests", [])
        kwargs.setdefault("total_recommendations_seen", 0)
        kwargs.setdefault("total_recommendations_clicked", 0)
        kwargs.setdefault("total_recommendations_favorited", 0)
        kwargs.setdefault("behavioral_weight", DEFAULT_BEHAVIORAL_WEIGHT)
        kwargs.setdefault("semantic_weight", DEFAULT_SEMANTIC_WEIGHT)
        kwargs.setdefault("community_weight", DEFAULT_COMMUNITY_WEIGHT)
        kwargs.setdefault("linguistic_weight", DEFAULT_LINGUISTIC_WEIGHT)
        kwargs.setdefault("feedback_history", [])
        super().__init__(**kwargs)

    def proficiency_for(self, language: str) -> int:
        level = (self.language_proficiency or {}).get(language)
        return int(level) if level else DEFAULT_PROFICIENCY

    def __repr__(self) -> str:
        return f"<UserRecommendationProfile(user_id='{self.user_id}')>"


class RecommendationFeedback(Base):
    """Append-only feedback event recorded against a profile"""

    __tablename__ = "recommendation_feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(
        Integer, ForeignKey("user_recommendation_profiles.id"), nullable=False, index=True
    )
    word_id = Column(String(64), nullable=False, index=True)
    feedback_type = Column(String(20), nullable=False)
    reason = Column(String(500), nullable=True)
    timestamp = Column(DateTime, default=func.now(), nullable=False, index=True)

    profile = relationship("UserRecommendationProfile", back_populates="feedback_history")

    def __repr__(self) -> str:
        return (
            f"<RecommendationFeedback(word_id='{self.word_id}', "
            f"feedback_type='{self.feedback_type}')>"
        )
