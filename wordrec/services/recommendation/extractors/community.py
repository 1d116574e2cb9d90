import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from wordrec.models.word import Word
from wordrec.schemas.recommendation import RecommendationCategory, RecommendationResult
from wordrec.services.recommendation.constants import (
    COMMUNITY_ACTIVITY_CAP,
    COMMUNITY_BASE_SCORE,
    COMMUNITY_INTERACTION_BONUS,
    COMMUNITY_INTERACTION_CAP,
    COMMUNITY_NEW_WORD_BONUS,
    COMMUNITY_NEW_WORD_DAYS,
    COMMUNITY_TARGET_FACTOR,
    COMMUNITY_WINDOW_DAYS,
)
from wordrec.services.recommendation.extractors.base import ExtractionContext, SignalExtractor
from wordrec.services.recommendation.repositories import ActivityRepository, WordRepository

logger = logging.getLogger(__name__)


class CommunityExtractor(SignalExtractor):
    """Recommends words the community has been active on, in the user's languages"""

    name = "community"
    category = RecommendationCategory.COMMUNITY

    def __init__(
        self,
        word_repo: WordRepository,
        activity_repo: ActivityRepository,
        window_days: int = COMMUNITY_WINDOW_DAYS,
        activity_cap: int = COMMUNITY_ACTIVITY_CAP,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.word_repo = word_repo
        self.activity_repo = activity_repo
        self.window_days = window_days
        self.activity_cap = activity_cap
        self.clock = clock

    def is_new(self, word: Word) -> bool:
        if word.created_at is None:
            return False
        return self.clock() - word.created_at <= timedelta(days=COMMUNITY_NEW_WORD_DAYS)

    def score(self, word: Word, interactions: int) -> RecommendationResult:
        is_new = self.is_new(word)
        score = COMMUNITY_BASE_SCORE + min(
            COMMUNITY_INTERACTION_CAP, interactions * COMMUNITY_INTERACTION_BONUS
        )
        if is_new:
            score += COMMUNITY_NEW_WORD_BONUS

        return RecommendationResult(
            entry_id=word.id,
            score=min(1.0, score),
            reasons=[
                f"Popular in the community ({interactions} interactions)",
                f"Trending in {word.language}",
                "Recently added word" if is_new else "Trending word",
            ],
            category=self.category,
            metadata={
                "trend_score": interactions,
                "interactions": interactions,
                "is_new": is_new,
                "language": word.language,
                "window_days": self.window_days,
            },
        )

    async def extract(self, context: ExtractionContext, limit: int) -> list[RecommendationResult]:
        languages = context.known_languages
        if not languages:
            return []

        since = self.clock() - timedelta(days=self.window_days)
        targets = await self.activity_repo.get_trending_targets(
            since, limit * COMMUNITY_TARGET_FACTOR, scan_limit=self.activity_cap
        )
        if not targets:
            return []

        words = await self.word_repo.get_approved_words(
            [t.entry_id for t in targets], languages=languages
        )
        by_id = {word.id: word for word in words}

        results = [
            self.score(by_id[target.entry_id], target.interactions)
            for target in targets
            if target.entry_id in by_id and context.accepts(by_id[target.entry_id])
        ]
        return self.rank(results, limit)

    async def score_candidate(self, context: ExtractionContext, word: Word) -> RecommendationResult:
        since = self.clock() - timedelta(days=self.window_days)
        interactions = await self.activity_repo.count_interactions(word.id, since)
        return self.score(word, interactions)
