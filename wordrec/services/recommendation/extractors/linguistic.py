import logging

from wordrec.models.word import Word
from wordrec.schemas.recommendation import RecommendationCategory, RecommendationResult
from wordrec.services.recommendation.constants import (
    ADVANCED_MIN_LEVEL,
    BEGINNER_MAX_LEVEL,
    BEGINNER_MIN_TRANSLATIONS,
    CORE_TRANSLATION_THRESHOLD,
    LINGUISTIC_BASE_SCORE,
    LINGUISTIC_CORE_BONUS,
    LINGUISTIC_FREQUENT_BONUS,
    LINGUISTIC_KEYWORD_RICH_BONUS,
    LINGUISTIC_MULTI_SENSE_BONUS,
    LINGUISTIC_SINGLE_SENSE_BONUS,
)
from wordrec.services.recommendation.extractors.base import ExtractionContext, SignalExtractor
from wordrec.services.recommendation.repositories import WordRepository

logger = logging.getLogger(__name__)

TIER_BEGINNER = "beginner"
TIER_INTERMEDIATE = "intermediate"
TIER_ADVANCED = "advanced"


def difficulty_tier(proficiency: int) -> str:
    if proficiency <= BEGINNER_MAX_LEVEL:
        return TIER_BEGINNER
    if proficiency >= ADVANCED_MIN_LEVEL:
        return TIER_ADVANCED
    return TIER_INTERMEDIATE


class LinguisticExtractor(SignalExtractor):
    """Recommends words of the user's learning languages that fit their level"""

    name = "linguistic"
    category = RecommendationCategory.LINGUISTIC

    def __init__(self, word_repo: WordRepository):
        self.word_repo = word_repo

    def score(self, word: Word, proficiency: int) -> RecommendationResult:
        tier = difficulty_tier(proficiency)
        score = LINGUISTIC_BASE_SCORE
        tier_reason = None

        if tier == TIER_BEGINNER:
            if word.sense_count == 1:
                score += LINGUISTIC_SINGLE_SENSE_BONUS
                tier_reason = "simple word"
            elif (word.translation_count or 0) >= BEGINNER_MIN_TRANSLATIONS:
                score += LINGUISTIC_FREQUENT_BONUS
                tier_reason = "frequently translated"
        else:
            if word.sense_count > 1:
                score += LINGUISTIC_MULTI_SENSE_BONUS
                tier_reason = "multiple senses"
            elif word.extracted_keywords:
                score += LINGUISTIC_KEYWORD_RICH_BONUS
                tier_reason = "rich in concepts"

        is_core = (word.translation_count or 0) > CORE_TRANSLATION_THRESHOLD
        if is_core:
            score += LINGUISTIC_CORE_BONUS

        level_reason = f"Level {tier}: {tier_reason}" if tier_reason else f"Level {tier}"
        return RecommendationResult(
            entry_id=word.id,
            score=min(1.0, score),
            reasons=[
                f"Suited to learning {word.language}",
                level_reason,
                "Core word" if is_core else "Enriching word",
            ],
            category=self.category,
            metadata={
                "language": word.language,
                "difficulty": tier,
                "proficiency": proficiency,
                "is_core": is_core,
            },
        )

    async def extract(self, context: ExtractionContext, limit: int) -> list[RecommendationResult]:
        if not context.learning_languages:
            return []

        seen: set[str] = set()
        results: list[RecommendationResult] = []
        for language in context.learning_languages:
            proficiency = context.profile.proficiency_for(language)
            words = await self.word_repo.find_for_learning(language, proficiency, limit)
            for word in words:
                if word.id in seen or not context.accepts(word):
                    continue
                seen.add(word.id)
                results.append(self.score(word, proficiency))

        return self.rank(results, limit)

    async def score_candidate(self, context: ExtractionContext, word: Word) -> RecommendationResult:
        if word.language not in context.learning_languages:
            return self.empty_result(word, "Not in a language you are learning")
        return self.score(word, context.profile.proficiency_for(word.language))
