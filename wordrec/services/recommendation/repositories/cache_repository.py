import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from pydantic import ValidationError
from redis import Redis
from redis.exceptions import RedisError

from wordrec.core.exception import CacheError
from wordrec.schemas.recommendation import (
    AlgorithmWeights,
    CachedRecommendations,
    RecommendationResult,
    RecommendationType,
)
from wordrec.services.recommendation.constants import (
    ALGORITHM_NAME,
    CACHE_KEY_PREFIX,
    CACHE_TTL_SECONDS,
)

logger = logging.getLogger(__name__)


def cache_key(user_id: str, recommendation_type: RecommendationType | str) -> str:
    type_value = (
        recommendation_type.value
        if isinstance(recommendation_type, RecommendationType)
        else recommendation_type
    )
    return f"{CACHE_KEY_PREFIX}:{user_id}:{type_value}"


class RecommendationCacheRepository:
    """Redis-backed recommendation cache, one key per (user, recommendation type)"""

    def __init__(
        self,
        redis_client: Redis,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    async def get(
        self, user_id: str, recommendation_type: RecommendationType
    ) -> CachedRecommendations | None:
        """Return the cached set only while ``valid_until`` is in the future"""
        key = cache_key(user_id, recommendation_type)
        try:
            raw = await asyncio.to_thread(self.redis.get, key)
        except RedisError as e:
            logger.warning(f"[CACHE] Read failed for {key}, treating as miss: {e}")
            return None

        if not raw:
            return None

        try:
            cached = CachedRecommendations.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[CACHE] Undecodable entry at {key}: {e}")
            return None

        if cached.valid_until <= self.clock():
            return None
        return cached

    async def put(
        self,
        user_id: str,
        recommendation_type: RecommendationType,
        recommendations: list[RecommendationResult],
        generation_time_ms: int,
        weights: AlgorithmWeights,
        requested_limit: int = 0,
    ) -> CachedRecommendations:
        """Overwrite the cached set for (user, type). Write failures are logged and ignored."""
        now = self.clock()
        avg_score = (
            sum(r.score for r in recommendations) / len(recommendations) if recommendations else 0.0
        )
        cached = CachedRecommendations(
            user_id=user_id,
            recommendation_type=recommendation_type,
            recommendations=recommendations,
            generated_at=now,
            valid_until=now + timedelta(seconds=self.ttl_seconds),
            algorithm=ALGORITHM_NAME,
            weights=weights,
            generation_time_ms=generation_time_ms,
            total_candidates=len(recommendations),
            avg_score=avg_score,
            requested_limit=requested_limit,
        )

        key = cache_key(user_id, recommendation_type)
        try:
            await asyncio.to_thread(
                self.redis.setex, key, self.ttl_seconds, cached.model_dump_json()
            )
        except RedisError as e:
            logger.error(f"[CACHE] Write failed for {key}: {e}")
        return cached

    async def invalidate(self, user_id: str) -> int:
        """Delete the cached sets of every recommendation type for a user"""
        keys = [cache_key(user_id, t) for t in RecommendationType]
        try:
            deleted = await asyncio.to_thread(self.redis.delete, *keys)
        except RedisError as e:
            logger.error(f"[CACHE] Invalidation failed for user {user_id}: {e}")
            raise CacheError("failed to invalidate cached recommendations", user_id=user_id) from e
        return int(deleted or 0)
