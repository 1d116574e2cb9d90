import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from wordrec.models.word import Word
from wordrec.schemas.recommendation import RecommendationCategory, RecommendationResult
from wordrec.services.recommendation.constants import (
    BEHAVIORAL_BASE_SCORE,
    BEHAVIORAL_CATEGORY_BONUS,
    BEHAVIORAL_KEYWORD_BONUS,
    BEHAVIORAL_KEYWORD_CAP,
    BEHAVIORAL_LANGUAGE_BONUS,
    BEHAVIORAL_OVERFETCH_FACTOR,
    BEHAVIORAL_POPULAR_BONUS,
    BEHAVIORAL_VIEW_CAP,
    BEHAVIORAL_VIEW_WINDOW_DAYS,
    POPULAR_TRANSLATION_THRESHOLD,
)
from wordrec.services.recommendation.extractors.base import ExtractionContext, SignalExtractor
from wordrec.services.recommendation.repositories import (
    FavoriteRepository,
    WordRepository,
    WordViewRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class UserInterests:
    categories: set[str] = field(default_factory=set)
    languages: set[str] = field(default_factory=set)
    keywords: set[str] = field(default_factory=set)

    def add_word(self, word: Word | None) -> None:
        if word is None:
            return
        if word.category_id:
            self.categories.add(word.category_id)
        if word.language:
            self.languages.add(word.language)
        self.keywords.update(word.extracted_keywords)

    def is_empty(self) -> bool:
        return not (self.categories or self.languages or self.keywords)


class BehavioralExtractor(SignalExtractor):
    """Recommends words close to what the user recently viewed or favorited"""

    name = "behavioral"
    category = RecommendationCategory.BEHAVIORAL

    def __init__(
        self,
        word_repo: WordRepository,
        view_repo: WordViewRepository,
        favorite_repo: FavoriteRepository,
        view_window_days: int = BEHAVIORAL_VIEW_WINDOW_DAYS,
        view_cap: int = BEHAVIORAL_VIEW_CAP,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.word_repo = word_repo
        self.view_repo = view_repo
        self.favorite_repo = favorite_repo
        self.view_window_days = view_window_days
        self.view_cap = view_cap
        self.clock = clock

    async def collect_interests(self, context: ExtractionContext) -> UserInterests:
        """Union of categories, languages and keywords of recent views and favorites.

        The profile's preferred categories and semantic interests are folded in
        so that feedback shapes later generations.
        """
        since = self.clock() - timedelta(days=self.view_window_days)
        views = await self.view_repo.get_recent_views(context.user_id, since=since, limit=self.view_cap)
        favorites = await self.favorite_repo.get_user_favorites(context.user_id)

        interests = UserInterests()
        for view in views:
            interests.add_word(view.word)
        for favorite in favorites:
            interests.add_word(favorite.word)

        interests.categories.update(context.profile.preferred_categories or [])
        interests.keywords.update(context.profile.semantic_interests or [])
        return interests

    def score(self, word: Word, interests: UserInterests) -> RecommendationResult:
        score = BEHAVIORAL_BASE_SCORE
        reasons: list[str] = []

        if word.category_id and word.category_id in interests.categories:
            score += BEHAVIORAL_CATEGORY_BONUS
            reasons.append("Category of interest")

        if word.language and word.language in interests.languages:
            score += BEHAVIORAL_LANGUAGE_BONUS
            reasons.append("Familiar language")

        common_keywords = [k for k in word.extracted_keywords if k in interests.keywords]
        if common_keywords:
            score += min(BEHAVIORAL_KEYWORD_CAP, len(common_keywords) * BEHAVIORAL_KEYWORD_BONUS)
            reasons.append(f"Similar concepts ({len(common_keywords)})")

        if (word.translation_count or 0) > POPULAR_TRANSLATION_THRESHOLD:
            score += BEHAVIORAL_POPULAR_BONUS
            reasons.append("Popular word")

        return RecommendationResult(
            entry_id=word.id,
            score=min(1.0, score),
            reasons=reasons,
            category=self.category,
            metadata={
                "view_count": word.translation_count or 0,
                "category": word.category_id,
                "similarity": round(score, 4),
            },
        )

    async def extract(self, context: ExtractionContext, limit: int) -> list[RecommendationResult]:
        interests = await self.collect_interests(context)
        if interests.is_empty():
            logger.debug(f"[BEHAVIORAL] No interests for user {context.user_id}")
            return []

        candidates = await self.word_repo.find_by_interests(
            categories=interests.categories,
            languages=interests.languages,
            keywords=interests.keywords,
            exclude_author=context.user_id,
            limit=limit * BEHAVIORAL_OVERFETCH_FACTOR,
        )
        results = [self.score(word, interests) for word in candidates if context.accepts(word)]
        return self.rank(results, limit)

    async def score_candidate(self, context: ExtractionContext, word: Word) -> RecommendationResult:
        interests = await self.collect_interests(context)
        if interests.is_empty():
            return self.empty_result(word, "No viewing history yet")
        return self.score(word, interests)
