import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wordrec.models.recommendation_profile import RecommendationFeedback, UserRecommendationProfile

logger = logging.getLogger(__name__)

WEIGHT_COLUMNS = {
    "behavioral": "behavioral_weight",
    "semantic": "semantic_weight",
    "community": "community_weight",
    "linguistic": "linguistic_weight",
}


class ProfileRepository:
    """Recommendation profile store accessor"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_weights: dict[str, float] | None = None,
    ):
        self.session_factory = session_factory
        self.default_weights = default_weights or {}

    async def _load(self, db: AsyncSession, user_id: str) -> UserRecommendationProfile | None:
        result = await db.execute(
            select(UserRecommendationProfile).where(UserRecommendationProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()

    def _new_profile(self, user_id: str) -> UserRecommendationProfile:
        weights = {
            WEIGHT_COLUMNS[name]: value
            for name, value in self.default_weights.items()
            if name in WEIGHT_COLUMNS
        }
        return UserRecommendationProfile(user_id=user_id, **weights)

    async def get_by_user_id(self, user_id: str) -> UserRecommendationProfile | None:
        async with self.session_factory() as db:
            return await self._load(db, user_id)

    async def get_or_create(self, user_id: str) -> UserRecommendationProfile:
        """Load the user's profile, creating it with default weights on first access"""
        async with self.session_factory() as db:
            profile = await self._load(db, user_id)
            if profile is not None:
                return profile

            profile = self._new_profile(user_id)
            db.add(profile)
            try:
                await db.commit()
            except IntegrityError:
                # Another request created it first
                await db.rollback()
                existing = await self._load(db, user_id)
                if existing is None:
                    raise
                return existing

            await db.refresh(profile)
            logger.info(f"[PROFILE] Created recommendation profile for user {user_id}")
            return profile

    async def touch_last_recommendation(self, user_id: str, at: datetime) -> None:
        async with self.session_factory() as db:
            await db.execute(
                update(UserRecommendationProfile)
                .where(UserRecommendationProfile.user_id == user_id)
                .values(last_recommendation_at=at)
            )
            await db.commit()

    async def append_feedback(
        self,
        user_id: str,
        word_id: str,
        feedback_type: str,
        reason: str | None,
        at: datetime,
        seen: int = 0,
        clicked: int = 0,
        favorited: int = 0,
    ) -> UserRecommendationProfile:
        """
        Append a feedback event and bump the engagement counters in one transaction

        The profile is created when absent.
        """
        async with self.session_factory() as db:
            async with db.begin():
                profile = await self._load(db, user_id)
                if profile is None:
                    profile = self._new_profile(user_id)
                    db.add(profile)
                    await db.flush()

                profile.feedback_history.append(
                    RecommendationFeedback(
                        word_id=word_id, feedback_type=feedback_type, reason=reason, timestamp=at
                    )
                )
                await db.flush()
                await db.execute(
                    update(UserRecommendationProfile)
                    .where(UserRecommendationProfile.id == profile.id)
                    .values(
                        total_recommendations_seen=UserRecommendationProfile.total_recommendations_seen
                        + seen,
                        total_recommendations_clicked=UserRecommendationProfile.total_recommendations_clicked
                        + clicked,
                        total_recommendations_favorited=UserRecommendationProfile.total_recommendations_favorited
                        + favorited,
                    )
                )

            await db.refresh(profile)
            return profile

    async def update_preferences(
        self,
        user_id: str,
        weights: dict[str, float] | None = None,
        preferred_categories: list[str] | None = None,
        language_proficiency: dict[str, int] | None = None,
    ) -> UserRecommendationProfile:
        """Partially update tunable preferences, creating the profile when absent"""
        async with self.session_factory() as db:
            profile = await self._load(db, user_id)
            if profile is None:
                profile = self._new_profile(user_id)
                db.add(profile)

            for name, value in (weights or {}).items():
                if name in WEIGHT_COLUMNS and value is not None:
                    setattr(profile, WEIGHT_COLUMNS[name], value)
            if preferred_categories is not None:
                profile.preferred_categories = list(preferred_categories)
            if language_proficiency is not None:
                merged = dict(profile.language_proficiency or {})
                merged.update(language_proficiency)
                profile.language_proficiency = merged

            await db.commit()
            await db.refresh(profile)
            return profile

    async def update_patterns(
        self,
        user_id: str,
        interaction_patterns: dict[str, Any],
        semantic_interests: list[str],
        preferred_categories: list[str],
    ) -> UserRecommendationProfile | None:
        """Store the fields derived from the user's interaction history"""
        async with self.session_factory() as db:
            profile = await self._load(db, user_id)
            if profile is None:
                return None

            patterns = dict(profile.interaction_patterns or {})
            patterns.update(interaction_patterns)
            profile.interaction_patterns = patterns
            profile.semantic_interests = semantic_interests
            profile.preferred_categories = preferred_categories

            await db.commit()
            await db.refresh(profile)
            return profile

    async def get_feedback_events(
        self, user_id: str, feedback_types: list[str] | None = None
    ) -> list[RecommendationFeedback]:
        """Feedback events of a user, oldest first"""
        query = (
            select(RecommendationFeedback)
            .join(UserRecommendationProfile)
            .where(UserRecommendationProfile.user_id == user_id)
        )
        if feedback_types:
            query = query.where(RecommendationFeedback.feedback_type.in_(feedback_types))
        query = query.order_by(RecommendationFeedback.timestamp, RecommendationFeedback.id)

        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def users_with_recent_feedback(self, since: datetime) -> list[str]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(UserRecommendationProfile.user_id)
                .join(RecommendationFeedback)
                .where(RecommendationFeedback.timestamp >= since)
                .distinct()
            )
            return [row[0] for row in result.all()]
