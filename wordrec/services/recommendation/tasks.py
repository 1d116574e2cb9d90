import asyncio
import logging
import time
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any

import structlog
from celery import Task
from prometheus_client import Counter as MetricCounter
from prometheus_client import Histogram
from sqlalchemy.exc import OperationalError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from wordrec.core.config import settings
from wordrec.infrastructure.celery import celery_app
from wordrec.infrastructure.database import worker_session_factory
from wordrec.models.interaction import WordView
from wordrec.models.word import Word
from wordrec.schemas.recommendation import FeedbackEvent, FeedbackType
from wordrec.services.recommendation.constants import (
    ACTIVE_PROFILE_WINDOW_DAYS,
    BEHAVIORAL_VIEW_WINDOW_DAYS,
    CONTENT_TYPES_COUNT,
    PEAK_HOURS_COUNT,
    SEMANTIC_INTERESTS_COUNT,
)
from wordrec.services.recommendation.repositories import (
    FavoriteRepository,
    ProfileRepository,
    WordRepository,
    WordViewRepository,
)

logger = structlog.get_logger(__name__)

# Views read when deriving interaction patterns
PATTERN_VIEW_CAP = 500

task_counter = MetricCounter(
    "wordrec_celery_tasks_total", "Total number of Celery tasks", ["task_name", "status"]
)

task_duration = Histogram(
    "wordrec_celery_task_duration_seconds", "Duration of Celery tasks", ["task_name"]
)


class BaseTask(Task):
    """Celery task with structured logging and metrics"""

    time_limit = 600
    soft_time_limit = 480

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self._start_time = time.time()
        return super().__call__(*args, **kwargs)

    def _duration(self) -> float:
        return time.time() - getattr(self, "_start_time", time.time())

    def on_success(
        self, retval: Any, task_id: str, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> None:
        duration = self._duration()
        logger.info("Task completed", task_name=self.name, task_id=task_id, duration=duration)
        task_counter.labels(task_name=self.name, status="success").inc()
        task_duration.labels(task_name=self.name).observe(duration)

    def on_failure(
        self,
        exc: Exception,
        task_id: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        einfo: Any,
    ) -> None:
        duration = self._duration()
        logger.error(
            "Task failed",
            task_name=self.name,
            task_id=task_id,
            duration=duration,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        task_counter.labels(task_name=self.name, status="failure").inc()
        task_duration.labels(task_name=self.name).observe(duration)


def top_values(values: Iterable[Any], count: int | None) -> list[Any]:
    """Most frequent values first, ties in first-seen order"""
    return [value for value, _ in Counter(values).most_common(count)]


def derive_patterns(
    views: list[WordView],
    liked_words: list[Word],
    rejected_words: list[Word],
    current_categories: list[str],
) -> dict[str, Any]:
    """Compute the derived profile fields from raw interaction data"""
    peak_hours = top_values(
        (view.last_viewed_at.hour for view in views if view.last_viewed_at), PEAK_HOURS_COUNT
    )
    content_types = top_values(
        (view.view_type for view in views if view.view_type), CONTENT_TYPES_COUNT
    )
    keywords = top_values(
        (keyword for word in liked_words for keyword in word.extracted_keywords),
        SEMANTIC_INTERESTS_COUNT,
    )

    rejected = {word.category_id for word in rejected_words if word.category_id}
    liked_categories = top_values((w.category_id for w in liked_words if w.category_id), None)
    categories = [
        category
        for category in dict.fromkeys([*current_categories, *liked_categories])
        if category not in rejected
    ]

    return {
        "interaction_patterns": {
            "peak_hours": peak_hours,
            "preferred_content_types": content_types,
        },
        "semantic_interests": keywords,
        "preferred_categories": categories,
    }


async def refresh_profile(
    user_id: str,
    profile_repo: ProfileRepository,
    view_repo: WordViewRepository,
    favorite_repo: FavoriteRepository,
    word_repo: WordRepository,
    clock: Callable[[], datetime] = datetime.now,
) -> dict[str, Any] | None:
    """Recompute and store the derived fields of one profile"""
    profile = await profile_repo.get_by_user_id(user_id)
    if profile is None:
        return None

    since = clock() - timedelta(days=BEHAVIORAL_VIEW_WINDOW_DAYS)
    views = await view_repo.get_recent_views(user_id, since=since, limit=PATTERN_VIEW_CAP)
    favorites = await favorite_repo.get_user_favorites(user_id)

    liked_ids: list[str] = []
    rejected_ids: list[str] = []
    for row in profile.feedback_history:
        event = FeedbackEvent.model_validate(row)
        if event.feedback_type in (FeedbackType.LIKE, FeedbackType.FAVORITE):
            liked_ids.append(event.entry_id)
        elif event.feedback_type == FeedbackType.NOT_INTERESTED:
            rejected_ids.append(event.entry_id)

    feedback_words = await word_repo.get_words_by_ids(list(dict.fromkeys(liked_ids + rejected_ids)))
    by_id = {word.id: word for word in feedback_words}
    liked_words = [by_id[i] for i in dict.fromkeys(liked_ids) if i in by_id]
    liked_words += [fav.word for fav in favorites if fav.word is not None]
    rejected_words = [by_id[i] for i in dict.fromkeys(rejected_ids) if i in by_id]

    derived = derive_patterns(
        views, liked_words, rejected_words, list(profile.preferred_categories or [])
    )
    await profile_repo.update_patterns(user_id, **derived)
    return derived


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OperationalError, ConnectionError, TimeoutError)),
    before_sleep=before_sleep_log(logging.getLogger(__name__), logging.WARNING),
    reraise=True,
)
async def _refresh_with_retry(user_id: str) -> dict[str, Any] | None:
    async with worker_session_factory() as session_factory:
        return await refresh_profile(
            user_id,
            profile_repo=ProfileRepository(session_factory),
            view_repo=WordViewRepository(session_factory),
            favorite_repo=FavoriteRepository(session_factory),
            word_repo=WordRepository(session_factory),
        )


async def _active_users(since: datetime) -> list[str]:
    async with worker_session_factory() as session_factory:
        return await ProfileRepository(session_factory).users_with_recent_feedback(since)


@celery_app.task(bind=True, base=BaseTask, name="refresh_profile_patterns")
def refresh_profile_patterns(self: BaseTask, user_id: str) -> dict[str, Any]:
    """Refresh the interaction-derived fields of a recommendation profile"""
    derived = asyncio.run(_refresh_with_retry(user_id))
    if derived is None:
        logger.warning("Profile not found", user_id=user_id, task_id=self.request.id)
        return {"status": "skipped", "user_id": user_id}

    logger.info(
        "Profile patterns refreshed",
        user_id=user_id,
        keywords=len(derived["semantic_interests"]),
        categories=len(derived["preferred_categories"]),
        task_id=self.request.id,
    )
    return {"status": "success", "user_id": user_id}


@celery_app.task(bind=True, base=BaseTask, name="refresh_active_profiles")
def refresh_active_profiles(self: BaseTask) -> dict[str, Any]:
    """Queue a refresh for every user who left feedback recently"""
    since = datetime.now() - timedelta(days=ACTIVE_PROFILE_WINDOW_DAYS)
    user_ids = asyncio.run(_active_users(since))

    for user_id in user_ids:
        refresh_profile_patterns.delay(user_id)

    logger.info(
        "Active profile refresh queued",
        count=len(user_ids),
        environment=settings.environment,
        task_id=self.request.id,
    )
    return {"status": "success", "queued": len(user_ids)}


def dispatch_profile_refresh(user_id: str) -> None:
    """Queue a background refresh of one profile"""
    refresh_profile_patterns.delay(user_id)
