import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from wordrec.core.exception import FeedbackError
from wordrec.schemas.recommendation import FeedbackRequest, FeedbackResponse, FeedbackType
from wordrec.services.monitoring.prometheus import RecommendationMonitoring, monitoring
from wordrec.services.recommendation.repositories import (
    ProfileRepository,
    RecommendationCacheRepository,
)

logger = logging.getLogger(__name__)

FEEDBACK_IMPACT: dict[FeedbackType, str] = {
    FeedbackType.LIKE: "Will increase similar recommendations",
    FeedbackType.DISLIKE: "Will reduce recommendations of this type",
    FeedbackType.NOT_INTERESTED: "Will avoid this category of words",
    FeedbackType.FAVORITE: "Will favour words on the same theme",
    FeedbackType.VIEW: "Will enrich your interest profile",
}

CLICK_FEEDBACK = (FeedbackType.VIEW, FeedbackType.LIKE, FeedbackType.FAVORITE)


def counter_increments(feedback_type: FeedbackType) -> tuple[int, int, int]:
    """(seen, clicked, favorited) increments for one feedback event"""
    seen = 1 if feedback_type == FeedbackType.VIEW else 0
    clicked = 1 if feedback_type in CLICK_FEEDBACK else 0
    favorited = 1 if feedback_type == FeedbackType.FAVORITE else 0
    return seen, clicked, favorited


class FeedbackProcessor:
    """Records feedback against the profile and invalidates the user's cache.

    Persistence and cache invalidation are awaited, a failure in either is
    surfaced as ``FeedbackError``. The profile refresh dispatch afterwards is
    best effort and only logs when it fails.
    """

    def __init__(
        self,
        profile_repo: ProfileRepository,
        cache_repo: RecommendationCacheRepository,
        refresh_dispatcher: Callable[[str], object] | None = None,
        metrics: RecommendationMonitoring = monitoring,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.profile_repo = profile_repo
        self.cache_repo = cache_repo
        self.refresh_dispatcher = refresh_dispatcher
        self.metrics = metrics
        self.clock = clock

    async def record(self, user_id: str, request: FeedbackRequest) -> FeedbackResponse:
        logger.info(
            f"[FEEDBACK] {request.feedback_type.value} from user {user_id} on word {request.entry_id}"
        )
        now = self.clock()
        seen, clicked, favorited = counter_increments(request.feedback_type)

        try:
            await self.profile_repo.append_feedback(
                user_id=user_id,
                word_id=request.entry_id,
                feedback_type=request.feedback_type.value,
                reason=request.reason,
                at=now,
                seen=seen,
                clicked=clicked,
                favorited=favorited,
            )
            await self.cache_repo.invalidate(user_id)
        except Exception as e:
            logger.error(f"[FEEDBACK] Failed to record feedback for user {user_id}: {e}", exc_info=True)
            self.metrics.record_feedback(request.feedback_type.value, success=False)
            raise FeedbackError(str(e), user_id=user_id) from e

        await self._dispatch_refresh(user_id)
        self.metrics.record_feedback(request.feedback_type.value, success=True)

        return FeedbackResponse(
            success=True,
            message="Feedback recorded",
            impact=FEEDBACK_IMPACT[request.feedback_type],
            timestamp=now,
        )

    async def _dispatch_refresh(self, user_id: str) -> None:
        if self.refresh_dispatcher is None:
            return
        try:
            await asyncio.to_thread(self.refresh_dispatcher, user_id)
        except Exception as e:
            logger.warning(f"[FEEDBACK] Could not queue profile refresh for user {user_id}: {e}")
