import logging
from collections.abc import Callable
from datetime import datetime

from wordrec.schemas.recommendation import (
    AlgorithmInfo,
    AlgorithmWeights,
    RecommendationItem,
    RecommendationResult,
    RecommendationsResponse,
)
from wordrec.services.recommendation.constants import ALGORITHM_NAME
from wordrec.services.recommendation.repositories import LanguageRepository, WordRepository

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE_FLAG = "🌍"
MISSING_DEFINITION = "Definition not available"


class ResponseFormatter:
    """Joins scored candidates back to their display data"""

    def __init__(
        self,
        word_repo: WordRepository,
        language_repo: LanguageRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.word_repo = word_repo
        self.language_repo = language_repo
        self.clock = clock

    async def format_items(self, results: list[RecommendationResult]) -> list[RecommendationItem]:
        """Candidates whose word no longer exists are dropped"""
        if not results:
            return []

        words = await self.word_repo.get_words_by_ids([r.entry_id for r in results])
        by_id = {word.id: word for word in words}
        languages = await self.language_repo.get_languages_by_codes(
            {word.language for word in words if word.language}
        )

        items: list[RecommendationItem] = []
        for result in results:
            word = by_id.get(result.entry_id)
            if word is None:
                logger.warning(f"[FORMATTER] Word {result.entry_id} disappeared, skipping")
                continue

            language = languages.get(word.language) if word.language else None
            items.append(
                RecommendationItem(
                    id=word.id,
                    word=word.word,
                    language=word.language or "unknown",
                    language_name=language.name if language else (word.language or "Unknown"),
                    language_flag=(language.flag_emoji if language else None)
                    or DEFAULT_LANGUAGE_FLAG,
                    definition=word.primary_definition or MISSING_DEFINITION,
                    score=result.score,
                    reasons=result.reasons,
                    category=result.category,
                    pronunciation=word.pronunciation,
                    examples=word.primary_examples,
                    audio_url=word.audio_url,
                    metadata=result.metadata,
                )
            )
        return items

    async def build_response(
        self,
        results: list[RecommendationResult],
        recommendation_type: str,
        from_cache: bool,
        generation_time_ms: int,
        weights: AlgorithmWeights,
    ) -> RecommendationsResponse:
        items = await self.format_items(results)
        avg_score = sum(item.score for item in items) / len(items) if items else 0.0
        return RecommendationsResponse(
            recommendations=items,
            count=len(items),
            type=recommendation_type,
            timestamp=self.clock(),
            from_cache=from_cache,
            generation_time_ms=generation_time_ms,
            avg_score=round(avg_score, 4),
            algorithm=AlgorithmInfo(type=ALGORITHM_NAME, weights=weights),
        )
